"""
Conversion options shared by the reducer, expander and CLI.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable

ANCHOR_TAG = "a"

DEFAULT_RETAIN_TAGS: frozenset[str] = frozenset((
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p",
    "ul", "ol", "li",
    ANCHOR_TAG,
))

DEFAULT_SKIP_TAGS: frozenset[str] = frozenset((
    "script", "style", "meta", "link", "noscript",
    "svg", "iframe", "nav", "footer", "header",
))

DEFAULT_LINK_SCHEMES: frozenset[str] = frozenset(("http", "https"))


def _lower_set(values: Iterable[str]) -> FrozenSet[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())


@dataclass(slots=True)
class ReduceConfig:
    """Recognized conversion options. Tag and scheme sets are stored lower-cased."""
    retain_tags: FrozenSet[str] = DEFAULT_RETAIN_TAGS
    skip_tags: FrozenSet[str] = DEFAULT_SKIP_TAGS
    table_tag: str = "table"
    expand_subpages: bool = False
    allowed_link_schemes: FrozenSet[str] = DEFAULT_LINK_SCHEMES
    parser: str = "lxml"
    timeout: float = 15.0
    user_agent: str = "pagetree/1.0"
    workers: int = 4
    link_workers: int = 1

    def __post_init__(self) -> None:
        self.retain_tags = _lower_set(self.retain_tags)
        self.skip_tags = _lower_set(self.skip_tags)
        self.allowed_link_schemes = _lower_set(self.allowed_link_schemes)
        self.table_tag = self.table_tag.strip().lower()
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.link_workers < 1:
            raise ValueError(f"link_workers must be >= 1, got {self.link_workers}")
