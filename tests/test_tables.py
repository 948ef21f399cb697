"""Tests for table-to-record extraction."""

from __future__ import annotations

from bs4 import BeautifulSoup

from pagetree.model import TableRecordSet
from pagetree.reduce import extract_table, extract_tables, reduce_html


def first_table(html: str):
    return BeautifulSoup(html, "lxml").find("table")


class TestExtractTable:
    def test_header_and_one_row(self) -> None:
        table = first_table(
            "<table><tr><th>Name</th><th>Age</th></tr><tr><td>Ann</td><td>30</td></tr></table>"
        )
        result = extract_table(table)

        assert result.headers == ["Name", "Age"]
        assert result.rows == [{"Name": "Ann", "Age": "30"}]

    def test_row_longer_than_header_gets_synthetic_keys(self) -> None:
        table = first_table("<table><tr><th>A</th></tr><tr><td>x</td><td>y</td></tr></table>")
        assert extract_table(table).rows == [{"A": "x", "col1": "y"}]

    def test_row_shorter_than_header(self) -> None:
        table = first_table(
            "<table><tr><th>A</th><th>B</th></tr><tr><td>x</td></tr></table>"
        )
        assert extract_table(table).rows == [{"A": "x"}]

    def test_td_header_row_is_fine(self) -> None:
        table = first_table("<table><tr><td>K</td></tr><tr><td>v</td></tr></table>")
        result = extract_table(table)
        assert result.headers == ["K"]
        assert result.rows == [{"K": "v"}]

    def test_rows_in_row_groups(self) -> None:
        table = first_table(
            "<table><thead><tr><th>Q</th><th>A</th></tr></thead>"
            "<tbody><tr><td>1</td><td>one</td></tr><tr><td>2</td><td>two</td></tr></tbody>"
            "<tfoot><tr><td>3</td><td>three</td></tr></tfoot></table>"
        )
        result = extract_table(table)

        assert result.headers == ["Q", "A"]
        assert result.rows == [
            {"Q": "1", "A": "one"},
            {"Q": "2", "A": "two"},
            {"Q": "3", "A": "three"},
        ]

    def test_rows_without_cells_are_skipped(self) -> None:
        table = first_table(
            "<table><tr></tr><tr><th>H</th></tr><tr></tr><tr><td>v</td></tr></table>"
        )
        result = extract_table(table)

        assert result.headers == ["H"]
        assert result.rows == [{"H": "v"}]

    def test_empty_cells_kept_as_empty_strings(self) -> None:
        table = first_table(
            "<table><tr><th>A</th><th></th></tr><tr><td> </td><td>b</td></tr></table>"
        )
        result = extract_table(table)

        assert result.headers == ["A", ""]
        assert result.rows == [{"A": "", "": "b"}]

    def test_cell_text_is_normalized_across_descendants(self) -> None:
        table = first_table(
            "<table><tr><th>Who</th></tr>"
            "<tr><td>  <b>Ann</b>\n  <i>Lee</i> </td></tr></table>"
        )
        assert extract_table(table).rows == [{"Who": "Ann Lee"}]

    def test_table_without_rows(self) -> None:
        result = extract_table(first_table("<table></table>"))

        assert result == TableRecordSet()
        assert result.to_dict() == {}

    def test_header_only_table(self) -> None:
        result = extract_table(first_table("<table><tr><th>Only</th></tr></table>"))
        assert result.to_dict() == {"headers": ["Only"]}

    def test_duplicate_headers_later_cell_wins(self) -> None:
        table = first_table(
            "<table><tr><th>X</th><th>X</th></tr><tr><td>1</td><td>2</td></tr></table>"
        )
        assert extract_table(table).rows == [{"X": "2"}]


class TestNestedTables:
    HTML = (
        "<table>"
        "<tr><th>K</th><th>V</th></tr>"
        "<tr><td>a</td><td>"
        "<table><tr><th>X</th></tr><tr><td>1</td></tr></table>"
        "</td></tr>"
        "</table>"
    )

    def test_outer_table_excludes_inner_rows_and_text(self) -> None:
        result = extract_table(first_table(self.HTML))

        assert result.headers == ["K", "V"]
        assert result.rows == [{"K": "a", "V": ""}]

    def test_inner_tables_become_own_record_sets(self) -> None:
        results = extract_tables(first_table(self.HTML))

        assert len(results) == 2
        assert results[1].headers == ["X"]
        assert results[1].rows == [{"X": "1"}]

    def test_reducer_emits_outer_then_inner(self) -> None:
        root = reduce_html(f"<html><body>{self.HTML}<p>end</p></body></html>")

        assert [type(c).__name__ for c in root.children] == [
            "TableRecordSet", "TableRecordSet", "ReducedNode",
        ]
        assert root.children[0].headers == ["K", "V"]
        assert root.children[1].headers == ["X"]
