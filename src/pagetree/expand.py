"""
One-hop subpage expansion of a reduced tree.
"""
from __future__ import annotations

import sys
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse

from pagetree.config import ANCHOR_TAG, ReduceConfig
from pagetree.fetch import FetchError, Fetcher
from pagetree.model import ReducedContent, ReducedNode
from pagetree.reduce import DEFAULT_CONFIG, reduce_html

HOST_SCHEMES: frozenset[str] = frozenset(("http", "https"))


@dataclass(slots=True)
class ExpansionStats:
    """Counters collected while expanding links."""
    links_seen: int = 0
    expanded: int = 0
    unresolved: int = 0
    failed: int = 0
    error_counts: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_failure(self, error: FetchError) -> None:
        self.failed += 1
        self.error_counts[error.kind] += 1

    def add(self, other: ExpansionStats) -> None:
        """Fold another run's counters into this one."""
        self.links_seen += other.links_seen
        self.expanded += other.expanded
        self.unresolved += other.unresolved
        self.failed += other.failed
        for kind, count in other.error_counts.items():
            self.error_counts[kind] += count


def resolve_link(
    href: str,
    base_url: str,
    allowed_schemes: AbstractSet[str] = DEFAULT_CONFIG.allowed_link_schemes,
) -> Optional[str]:
    """
    Resolve *href* against *base_url* into an absolute, fragment-free URL.

    Returns None for empty hrefs, URLs that cannot be joined, schemes
    outside *allowed_schemes* (``mailto:``, ``javascript:`` and so on) and
    http(s) URLs without a host. Other allowed schemes need no host
    (``file:///path``).
    """
    href = (href or "").strip()
    if not href:
        return None

    try:
        joined, _ = urldefrag(urljoin(base_url, href))
        parsed = urlparse(joined)
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in allowed_schemes:
        return None
    if scheme in HOST_SCHEMES and not parsed.netloc:
        return None
    return joined


def iter_nodes(root: ReducedContent) -> Iterator[ReducedNode]:
    """
    Yield every node of *root* exactly once, in document order.

    Uses an explicit stack. Record sets are leaves and attached subpages are
    never entered.
    """
    stack: List[ReducedContent] = [root]
    while stack:
        item = stack.pop()
        if not isinstance(item, ReducedNode):
            continue
        yield item
        stack.extend(reversed(item.children))


def print_link_line(url: str, outcome: str) -> None:
    sys.stderr.write(f"\n  → {outcome} {url}")
    sys.stderr.flush()


def _load_subpage(url: str, fetch: Fetcher, config: ReduceConfig) -> ReducedNode:
    return reduce_html(fetch(url), config)


def _collect_targets(
    root: ReducedContent,
    base_url: str,
    config: ReduceConfig,
    stats: ExpansionStats,
    verbose: bool,
) -> List[Tuple[ReducedNode, str]]:
    targets: List[Tuple[ReducedNode, str]] = []
    for node in iter_nodes(root):
        if node.tag != ANCHOR_TAG or node.link_target is None:
            continue
        stats.links_seen += 1

        url = resolve_link(node.link_target, base_url, config.allowed_link_schemes)
        if url is None:
            stats.unresolved += 1
            if verbose:
                print_link_line(node.link_target, "SKIP")
            continue
        targets.append((node, url))
    return targets


def expand_one_hop(
    root: ReducedContent,
    base_url: str,
    fetch: Fetcher,
    config: ReduceConfig = DEFAULT_CONFIG,
    stats: Optional[ExpansionStats] = None,
    verbose: bool = False,
) -> ExpansionStats:
    """
    Attach the reduced tree of every linked page to its anchor node, in place.

    Each anchor whose target resolves to an allowed scheme is fetched once. A failed
    fetch leaves that anchor's ``linked_subpage`` unset and the walk goes on.
    Attached subpages are reduced but never expanded themselves.

    With ``config.link_workers > 1`` fetches run on a thread pool; the
    resulting tree is the same as with the sequential walk.

    Returns:
        The expansion statistics (``stats`` if one was passed in).
    """
    if stats is None:
        stats = ExpansionStats()

    targets = _collect_targets(root, base_url, config, stats, verbose)

    if config.link_workers > 1 and len(targets) > 1:
        with ThreadPoolExecutor(max_workers=config.link_workers) as pool:
            future_to_target = {
                pool.submit(_load_subpage, url, fetch, config): (node, url)
                for node, url in targets
            }
            for future in as_completed(future_to_target):
                node, url = future_to_target[future]
                try:
                    node.linked_subpage = future.result()
                except FetchError as e:
                    _record_failure(stats, url, e, verbose)
                else:
                    _record_success(stats, url, verbose)
        return stats

    for node, url in targets:
        try:
            node.linked_subpage = _load_subpage(url, fetch, config)
        except FetchError as e:
            _record_failure(stats, url, e, verbose)
        else:
            _record_success(stats, url, verbose)

    return stats


def _record_success(stats: ExpansionStats, url: str, verbose: bool) -> None:
    stats.expanded += 1
    if verbose:
        print_link_line(url, "OK")


def _record_failure(stats: ExpansionStats, url: str, error: FetchError, verbose: bool) -> None:
    stats.record_failure(error)
    if verbose:
        sys.stderr.write(f"\n  ✗ ERROR {url}: {error.reason}")
        sys.stderr.flush()
