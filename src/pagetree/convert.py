"""
Page conversion pipeline: fetch, reduce, optionally expand links.
"""
from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pagetree.config import ReduceConfig
from pagetree.expand import ExpansionStats, expand_one_hop
from pagetree.fetch import FetchError, Fetcher, PageFetcher
from pagetree.model import ReducedNode, to_json
from pagetree.reduce import DEFAULT_CONFIG, reduce_html


@dataclass(slots=True)
class ConversionResult:
    """Outcome of converting one URL. Exactly one of ``tree``/``error`` is set."""
    url: str
    tree: Optional[ReducedNode] = None
    error: Optional[FetchError] = None
    stats: ExpansionStats = field(default_factory=ExpansionStats)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_json(self) -> str:
        if self.tree is None:
            raise ValueError(f"No tree for failed conversion of {self.url}")
        return to_json(self.tree)


def make_fetcher(config: ReduceConfig) -> PageFetcher:
    return PageFetcher(timeout_s=config.timeout, user_agent=config.user_agent)


def convert_url(
    url: str,
    config: ReduceConfig = DEFAULT_CONFIG,
    fetch: Optional[Fetcher] = None,
    verbose: bool = False,
) -> ConversionResult:
    """
    Convert a single page.

    Steps run strictly in order: fetch the page, reduce it, then expand its
    links when ``config.expand_subpages`` is set.

    Raises:
        FetchError: If the page itself cannot be fetched.
    """
    if fetch is None:
        fetch = make_fetcher(config)

    if verbose:
        sys.stderr.write(f"Converting: {url}")
        sys.stderr.flush()

    body = fetch(url)
    tree = reduce_html(body, config)
    result = ConversionResult(url=url, tree=tree)

    if config.expand_subpages:
        expand_one_hop(tree, url, fetch, config, stats=result.stats, verbose=verbose)

    if verbose:
        sys.stderr.write("\n")
    return result


def _convert_item(
    url: str,
    config: ReduceConfig,
    fetch: Fetcher,
    verbose: bool,
) -> ConversionResult:
    try:
        return convert_url(url, config, fetch, verbose)
    except FetchError as e:
        if verbose:
            sys.stderr.write(f"\n  ✗ ERROR {url}: {e.reason}\n")
        return ConversionResult(url=url, error=e)


def convert_many(
    urls: Sequence[str],
    config: ReduceConfig = DEFAULT_CONFIG,
    fetch: Optional[Fetcher] = None,
    verbose: bool = False,
) -> List[ConversionResult]:
    """
    Convert several pages on a thread pool of ``config.workers`` threads.

    Items are independent: a page that cannot be fetched yields a result
    with ``error`` set and does not affect the others. Results follow the
    order of *urls*.
    """
    if fetch is None:
        fetch = make_fetcher(config)

    if config.workers == 1 or len(urls) <= 1:
        return [_convert_item(url, config, fetch, verbose) for url in urls]

    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        futures = [
            pool.submit(_convert_item, url, config, fetch, verbose)
            for url in urls
        ]
        return [future.result() for future in futures]
