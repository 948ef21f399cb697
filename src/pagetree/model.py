"""
Reduced tree data structures and their JSON rendering.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

NO_HTML_PLACEHOLDER = "(No <html> found)"


@dataclass(slots=True)
class TableRecordSet:
    """A table as a header list plus one field-keyed record per data row."""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.headers:
            out["headers"] = list(self.headers)
        if self.rows:
            out["rows"] = [dict(row) for row in self.rows]
        return out


@dataclass(slots=True)
class ReducedNode:
    """
    A node of the reduced tree.

    Either a text leaf (``tag`` is None, ``text`` set) or a structural node
    (``tag`` set, content in ``children``). ``link_target`` and
    ``linked_subpage`` only ever appear on anchor nodes.
    """
    tag: Optional[str] = None
    link_target: Optional[str] = None
    text: Optional[str] = None
    children: List[ReducedContent] = field(default_factory=list)
    linked_subpage: Optional[ReducedNode] = None

    @property
    def is_text(self) -> bool:
        return self.tag is None

    def to_dict(self) -> Dict[str, Any]:
        """Render as a plain dict, omitting absent and empty fields."""
        root: Dict[str, Any] = {}
        # Explicit stack of (node, dict to fill) pairs
        stack: List[Tuple[ReducedContent, Dict[str, Any]]] = [(self, root)]
        while stack:
            node, out = stack.pop()
            if isinstance(node, TableRecordSet):
                out.update(node.to_dict())
                continue
            if node.tag is not None:
                out["tag"] = node.tag
            if node.link_target is not None:
                out["href"] = node.link_target
            if node.text is not None:
                out["text"] = node.text
            if node.children:
                rendered: List[Dict[str, Any]] = [{} for _ in node.children]
                out["children"] = rendered
                stack.extend(zip(node.children, rendered))
            if node.linked_subpage is not None:
                subpage: Dict[str, Any] = {}
                out["linked_subpage"] = subpage
                stack.append((node.linked_subpage, subpage))
        return root


# Closed union: a table result can sit anywhere a structural node can.
ReducedContent = Union[ReducedNode, TableRecordSet]


def text_node(text: str) -> ReducedNode:
    return ReducedNode(text=text)


def _encode(value: Any) -> str:
    """
    Encode nested dicts/lists/scalars like ``json.dumps(value, ensure_ascii=False)``.

    ``json.dumps`` recurses once per nesting level, so deep trees are
    assembled here with an explicit stack and only scalars go through json.
    """
    parts: List[str] = []
    # Items are ("raw", text) for punctuation or ("value", obj) still to encode
    stack: List[Tuple[str, Any]] = [("value", value)]
    while stack:
        kind, item = stack.pop()
        if kind == "raw":
            parts.append(item)
            continue

        if isinstance(item, dict):
            pending: List[Tuple[str, Any]] = [("raw", "{")]
            for i, (key, val) in enumerate(item.items()):
                sep = ", " if i else ""
                pending.append(("raw", sep + json.dumps(key, ensure_ascii=False) + ": "))
                pending.append(("value", val))
            pending.append(("raw", "}"))
            stack.extend(reversed(pending))
        elif isinstance(item, list):
            pending = [("raw", "[")]
            for i, val in enumerate(item):
                if i:
                    pending.append(("raw", ", "))
                pending.append(("value", val))
            pending.append(("raw", "]"))
            stack.extend(reversed(pending))
        else:
            parts.append(json.dumps(item, ensure_ascii=False))

    return "".join(parts)


def to_json(content: ReducedContent) -> str:
    """Serialize a reduced tree as a single-line JSON document."""
    return _encode(content.to_dict())
