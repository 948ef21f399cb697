"""
Reduce web pages to a compact structural tree (headings, paragraphs, lists,
links, tables), optionally expanding every link one level deep.
Outputs single-line JSON.
"""
from pagetree.config import ReduceConfig
from pagetree.convert import ConversionResult, convert_many, convert_url
from pagetree.expand import ExpansionStats, expand_one_hop, resolve_link
from pagetree.fetch import FetchError, PageFetcher
from pagetree.model import ReducedNode, TableRecordSet, to_json
from pagetree.reduce import (
    TagClass,
    classify,
    extract_table,
    normalize,
    reduce_document,
    reduce_html,
)

__version__ = "1.0.0"
__all__ = [
    "ReduceConfig",
    "ConversionResult",
    "convert_many",
    "convert_url",
    "ExpansionStats",
    "expand_one_hop",
    "resolve_link",
    "FetchError",
    "PageFetcher",
    "ReducedNode",
    "TableRecordSet",
    "to_json",
    "TagClass",
    "classify",
    "extract_table",
    "normalize",
    "reduce_document",
    "reduce_html",
]
