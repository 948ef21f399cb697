"""
Markup reduction: text normalization, tag classification, table extraction
and the tree reducer.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from pagetree.config import ANCHOR_TAG, ReduceConfig
from pagetree.model import (
    NO_HTML_PLACEHOLDER,
    ReducedContent,
    ReducedNode,
    TableRecordSet,
    text_node,
)

WHITESPACE_RE = re.compile(r"\s+")

ROW_TAG = "tr"
CELL_TAGS = ("th", "td")

DEFAULT_CONFIG = ReduceConfig()


class TagClass(Enum):
    SKIP = "skip"
    TABLE = "table"
    RETAIN = "retain"
    TRANSPARENT = "transparent"


def clean_text(raw: str) -> str:
    """Turn newlines into spaces, collapse whitespace runs and trim."""
    return WHITESPACE_RE.sub(" ", raw.replace("\n", " ")).strip()


def normalize(raw: str) -> Optional[str]:
    """Like :func:`clean_text`, but return None when nothing is left."""
    cleaned = clean_text(raw)
    return cleaned or None


def classify(tag_name: str, config: ReduceConfig = DEFAULT_CONFIG) -> TagClass:
    """Classify a tag name (case-insensitive). Skip wins over table and retain."""
    name = tag_name.lower()
    if name in config.skip_tags:
        return TagClass.SKIP
    if name == config.table_tag:
        return TagClass.TABLE
    if name in config.retain_tags:
        return TagClass.RETAIN
    return TagClass.TRANSPARENT


def _is_text(node) -> bool:
    # Comments, doctypes, CDATA and processing instructions are PreformattedString
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _first_href(el: Tag) -> Optional[str]:
    for name, value in el.attrs.items():
        if name.lower() == "href":
            if isinstance(value, list):
                return " ".join(value)
            return value
    return None


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _table_rows(table: Tag, table_tag: str) -> List[Tag]:
    """Rows owned by *table* itself; rows of nested tables are excluded."""
    return [
        row for row in table.find_all(ROW_TAG)
        if row.find_parent(table_tag) is table
    ]


def _row_cells(row: Tag) -> List[Tag]:
    return [
        cell for cell in row.find_all(CELL_TAGS)
        if cell.find_parent(ROW_TAG) is row
    ]


def _cell_text(cell: Tag, table: Tag, table_tag: str) -> str:
    parts = [
        s for s in cell.find_all(string=True)
        if _is_text(s) and s.find_parent(table_tag) is table
    ]
    return clean_text("".join(parts))


def extract_table(table: Tag, config: ReduceConfig = DEFAULT_CONFIG) -> TableRecordSet:
    """
    Convert a table element into a record set.

    The first row with at least one cell becomes the header; each later
    non-empty row becomes a record keyed by header name, or ``col<i>`` for
    cells beyond the header. Cell values are always strings and may be empty.
    """
    table_tag = config.table_tag
    result = TableRecordSet()
    header_found = False

    for row in _table_rows(table, table_tag):
        cells = _row_cells(row)
        if not cells:
            continue
        values = [_cell_text(cell, table, table_tag) for cell in cells]

        if not header_found:
            result.headers = values
            header_found = True
            continue

        record = {}
        for i, value in enumerate(values):
            key = result.headers[i] if i < len(result.headers) else f"col{i}"
            record[key] = value
        result.rows.append(record)

    return result


def extract_tables(table: Tag, config: ReduceConfig = DEFAULT_CONFIG) -> List[TableRecordSet]:
    """Record set of *table* followed by one per nested table, in document order."""
    results = [extract_table(table, config)]
    for nested in table.find_all(config.table_tag):
        results.append(extract_table(nested, config))
    return results


# ---------------------------------------------------------------------------
# Tree reduction
# ---------------------------------------------------------------------------

def reduce_children(el: Tag, config: ReduceConfig = DEFAULT_CONFIG) -> List[ReducedContent]:
    """
    Reduce the child nodes of *el* into a flat, document-ordered list.

    Walks with an explicit stack of (child iterator, output list) frames so
    page depth is not bounded by the interpreter's recursion limit. A
    retained element opens a frame writing into its own node; a transparent
    one opens a frame writing into the current output.
    """
    out: List[ReducedContent] = []
    stack = [(iter(el.children), out)]

    while stack:
        children, target = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            continue

        if isinstance(child, Tag):
            kind = classify(child.name, config)
            if kind is TagClass.SKIP:
                continue
            if kind is TagClass.TABLE:
                # Nested tables follow the outer table's record set
                target.extend(extract_tables(child, config))
            elif kind is TagClass.RETAIN:
                node = _retained_node(child)
                target.append(node)
                stack.append((iter(child.children), node.children))
            else:
                stack.append((iter(child.children), target))
        elif _is_text(child):
            cleaned = normalize(str(child))
            if cleaned is not None:
                target.append(text_node(cleaned))

    return out


def _retained_node(el: Tag) -> ReducedNode:
    tag_name = el.name.lower()
    link = _first_href(el) if tag_name == ANCHOR_TAG else None
    return ReducedNode(tag=tag_name, link_target=link)


def reduce_element(el: Tag, config: ReduceConfig = DEFAULT_CONFIG) -> ReducedNode:
    """Build the node for a retained element."""
    node = _retained_node(el)
    node.children = reduce_children(el, config)
    return node


def reduce_document(soup: BeautifulSoup, config: ReduceConfig = DEFAULT_CONFIG) -> ReducedNode:
    """Reduce a parsed document starting at its ``<html>`` element."""
    root = soup.find("html")
    if root is None:
        return ReducedNode(tag="html", text=NO_HTML_PLACEHOLDER)
    return ReducedNode(tag="html", children=reduce_children(root, config))


def reduce_html(markup: str, config: ReduceConfig = DEFAULT_CONFIG) -> ReducedNode:
    """Parse raw markup and reduce it."""
    if config.parser == "html.parser":
        # Keep the first of duplicated attributes, as lxml does
        soup = BeautifulSoup(markup, config.parser, on_duplicate_attribute="ignore")
    else:
        soup = BeautifulSoup(markup, config.parser)
    return reduce_document(soup, config)
