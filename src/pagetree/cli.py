"""
Command-line interface for pagetree.
"""
from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Set
from urllib.parse import urlparse

from pagetree.config import DEFAULT_RETAIN_TAGS, DEFAULT_SKIP_TAGS, ReduceConfig
from pagetree.convert import ConversionResult, convert_many
from pagetree.expand import ExpansionStats

# Characters that are not allowed in file names on common filesystems
UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def print_summary(results: Sequence[ConversionResult]) -> None:
    """Print conversion summary to stderr."""
    totals = ExpansionStats()
    page_errors = {}
    for r in results:
        totals.add(r.stats)
        if r.error is not None:
            page_errors[r.error.kind] = page_errors.get(r.error.kind, 0) + 1

    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CONVERSION SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Pages converted:        {sum(1 for r in results if r.ok)}\n")
    sys.stderr.write(f"Pages failed:           {sum(1 for r in results if not r.ok)}\n")
    sys.stderr.write(f"Links seen:             {totals.links_seen}\n")
    sys.stderr.write(f"Links expanded:         {totals.expanded}\n")
    sys.stderr.write(f"Links skipped:          {totals.unresolved}\n\n")

    errors = dict(totals.error_counts)
    for kind, count in page_errors.items():
        errors[kind] = errors.get(kind, 0) + count

    if errors:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(errors.items()):
            sys.stderr.write(f"  {error_label(error_type)}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def error_label(error_type: str) -> str:
    if error_type == "connection_error":
        return "Connection errors"
    if error_type == "not_html":
        return "Non-HTML responses"
    return f"HTTP {error_type}"


def output_filename(url: str) -> str:
    """Build ``{domain}_{last path segment}.json`` for a page URL."""
    parsed = urlparse(url)
    domain = parsed.hostname or "nodomain"
    last_segment = parsed.path.rstrip("/").rsplit("/", 1)[-1] if parsed.path else ""
    name = f"{domain}_{last_segment or 'nopath'}"
    return UNSAFE_FILENAME_RE.sub("_", name) + ".json"


def unique_filename(name: str, used: Set[str]) -> str:
    """Suffix *name* with ``_2``, ``_3``, ... until it is not in *used*, then claim it."""
    stem = name[: -len(".json")] if name.endswith(".json") else name
    candidate = name
    n = 2
    while candidate in used:
        candidate = f"{stem}_{n}.json"
        n += 1
    used.add(candidate)
    return candidate


def parse_tag_list(value: str) -> List[str]:
    return [t for t in (part.strip() for part in value.split(",")) if t]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Reduce web pages to a single-line JSON tree of headings, paragraphs, "
            "lists, links and tables."
        )
    )
    parser.add_argument("urls", nargs="+", help="Page URL(s) to convert (e.g. https://example.com)")
    parser.add_argument(
        "--expand-subpages", action="store_true",
        help="Fetch every link one level deep and attach its reduced tree",
    )
    parser.add_argument("--timeout", type=float, default=15.0, help="Request timeout in seconds (default: 15)")
    parser.add_argument("--user-agent", default="pagetree/1.0", help="User-Agent header")
    parser.add_argument("--workers", type=int, default=4, help="Pages converted in parallel (default: 4)")
    parser.add_argument(
        "--link-workers", type=int, default=1,
        help="Linked pages fetched in parallel per page (default: 1)",
    )
    parser.add_argument(
        "--parser", default="lxml", choices=("lxml", "html.parser"),
        help="BeautifulSoup tree builder (default: lxml)",
    )
    parser.add_argument(
        "--retain-tags", type=parse_tag_list,
        help=f"Comma-separated tags to keep (default: {','.join(sorted(DEFAULT_RETAIN_TAGS))})",
    )
    parser.add_argument(
        "--skip-tags", type=parse_tag_list,
        help=f"Comma-separated tags to drop with their content (default: {','.join(sorted(DEFAULT_SKIP_TAGS))})",
    )
    parser.add_argument(
        "--out",
        help="Output directory, or '-' for stdout with one JSON line per page (default: pages/)",
    )
    parser.add_argument("--verbose", action="store_true", help="Show progress and summary")
    return parser


def config_from_args(args: argparse.Namespace) -> ReduceConfig:
    tag_options = {}
    if args.retain_tags is not None:
        tag_options["retain_tags"] = args.retain_tags
    if args.skip_tags is not None:
        tag_options["skip_tags"] = args.skip_tags

    return ReduceConfig(
        expand_subpages=args.expand_subpages,
        parser=args.parser,
        timeout=args.timeout,
        user_agent=args.user_agent,
        workers=args.workers,
        link_workers=args.link_workers,
        **tag_options,
    )


def write_results(results: Sequence[ConversionResult], out: Optional[str], verbose: bool) -> None:
    if out == "-":
        for r in results:
            if r.ok:
                print(r.to_json())
        return

    out_dir = Path(out) if out else Path("pages")
    out_dir.mkdir(parents=True, exist_ok=True)
    used: Set[str] = set()
    for r in results:
        if not r.ok:
            continue
        output_path = out_dir / unique_filename(output_filename(r.url), used)
        output_path.write_text(r.to_json(), encoding="utf-8")
        if verbose:
            sys.stderr.write(f"Results written to: {output_path}\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the pagetree CLI."""
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    results = convert_many(args.urls, config, verbose=args.verbose)

    if args.verbose:
        print_summary(results)

    write_results(results, args.out, args.verbose)

    for r in results:
        if not r.ok:
            sys.stderr.write(f"Failed to fetch {r.url}: {r.error.reason}\n")

    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
