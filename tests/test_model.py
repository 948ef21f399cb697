"""Tests for reduced tree rendering."""

from __future__ import annotations

import json

from pagetree.model import ReducedNode, TableRecordSet, to_json


class TestToDict:
    def test_absent_fields_are_omitted(self) -> None:
        assert ReducedNode(tag="p").to_dict() == {"tag": "p"}
        assert ReducedNode(text="x").to_dict() == {"text": "x"}

    def test_key_order(self) -> None:
        node = ReducedNode(
            tag="a",
            link_target="/x",
            children=[ReducedNode(text="go")],
            linked_subpage=ReducedNode(tag="html"),
        )
        assert list(node.to_dict()) == ["tag", "href", "children", "linked_subpage"]

    def test_table_record_set(self) -> None:
        table = TableRecordSet(headers=["A", "B"], rows=[{"A": "1", "B": "2"}])
        assert table.to_dict() == {"headers": ["A", "B"], "rows": [{"A": "1", "B": "2"}]}

    def test_empty_table_renders_as_empty_object(self) -> None:
        assert TableRecordSet().to_dict() == {}

    def test_mixed_children(self) -> None:
        root = ReducedNode(tag="html", children=[
            ReducedNode(tag="h1", children=[ReducedNode(text="T")]),
            TableRecordSet(headers=["H"]),
        ])
        assert root.to_dict() == {
            "tag": "html",
            "children": [
                {"tag": "h1", "children": [{"text": "T"}]},
                {"headers": ["H"]},
            ],
        }


class TestToJson:
    def test_single_line_and_unicode(self) -> None:
        root = ReducedNode(tag="html", children=[
            ReducedNode(tag="p", children=[ReducedNode(text="日本語のテキスト")]),
            ReducedNode(tag="ul", children=[ReducedNode(tag="li", children=[ReducedNode(text="x")])]),
        ])
        out = to_json(root)

        assert "\n" not in out
        assert "日本語のテキスト" in out
        assert json.loads(out) == root.to_dict()

    def test_nulls_never_rendered(self) -> None:
        out = to_json(ReducedNode(tag="a", children=[ReducedNode(text="no link")]))
        assert "null" not in out
        assert "href" not in out
        assert "linked_subpage" not in out

    def test_matches_json_dumps_formatting(self) -> None:
        root = ReducedNode(tag="html", children=[
            ReducedNode(tag="a", link_target='/q?x="1"&y=\\', children=[ReducedNode(text="tab\there ü")]),
            TableRecordSet(headers=["A", "B"], rows=[{"A": "1", "col1": ""}]),
            TableRecordSet(),
        ])
        assert to_json(root) == json.dumps(root.to_dict(), ensure_ascii=False)


def chain(depth: int) -> ReducedNode:
    root = node = ReducedNode(tag="ul")
    for _ in range(depth):
        child = ReducedNode(tag="li")
        node.children.append(child)
        node = child
    node.children.append(ReducedNode(text="bottom"))
    return root


class TestDeepTrees:
    def test_to_dict_keeps_every_level(self) -> None:
        rendered = chain(5000).to_dict()

        levels = 0
        while "children" in rendered:
            rendered = rendered["children"][0]
            levels += 1
        assert levels == 5001
        assert rendered == {"text": "bottom"}

    def test_to_json_handles_depth(self) -> None:
        out = to_json(chain(5000))

        assert out.count('"tag": "li"') == 5000
        assert out.endswith('{"text": "bottom"}' + "]}" * 5001)

    def test_deep_linked_subpage_rendered(self) -> None:
        anchor = ReducedNode(tag="a", link_target="/deep", linked_subpage=chain(3000))
        out = to_json(ReducedNode(tag="html", children=[anchor]))

        assert '"linked_subpage": {"tag": "ul"' in out
        assert out.count('"tag": "li"') == 3000
