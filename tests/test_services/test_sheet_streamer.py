"""Tests for the worksheet streaming state machine."""

import io
from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fixtures import sheet_xml
from xlsx_cell_extractor.models import ExtractedRecord
from xlsx_cell_extractor.services.container import WorkbookContainer
from xlsx_cell_extractor.services.shared_strings import SharedStringTable
from xlsx_cell_extractor.services.sheet_streamer import SheetStreamer
from xlsx_cell_extractor.utils.exceptions import MalformedXMLError, MemberNotFoundError


def _stream(rows: str, strings: list[str] | None = None) -> list[tuple[int, int, str]]:
    streamer = SheetStreamer(SharedStringTable(strings or []))
    records = streamer.stream(io.BytesIO(sheet_xml(rows).encode()))
    return [(r.row_number, r.column_number, r.sheet_value) for r in records]


class TestCellValues:
    """Tests for value resolution per cell type."""

    def test_shared_string_resolved(self) -> None:
        rows = '<row r="1"><c r="A1" t="s"><v>1</v></c></row>'
        assert _stream(rows, ["zero", "one"]) == [(1, 1, "one")]

    def test_shared_string_out_of_range_is_empty(self) -> None:
        rows = '<row r="1"><c r="A1" t="s"><v>5</v></c></row>'
        assert _stream(rows, ["zero"]) == [(1, 1, "")]

    def test_shared_string_underscored_index_is_empty(self) -> None:
        rows = '<row r="1"><c r="A1" t="s"><v>0_1</v></c></row>'
        assert _stream(rows, ["x", "y"]) == [(1, 1, "")]

    def test_shared_string_non_numeric_is_empty(self) -> None:
        rows = '<row r="1"><c r="A1" t="s"><v>x</v></c></row>'
        assert _stream(rows, ["zero"]) == [(1, 1, "")]

    @pytest.mark.parametrize(
        ("cell", "expected"),
        [
            ('<c r="A1"><v>3.14</v></c>', "3.14"),
            ('<c r="A1" t="n"><v>42</v></c>', "42"),
            ('<c r="A1" t="b"><v>1</v></c>', "1"),
            ('<c r="A1" t="e"><v>#DIV/0!</v></c>', "#DIV/0!"),
            ('<c r="A1" t="str"><f>A2&amp;"x"</f><v>yx</v></c>', "yx"),
            ('<c r="A1" s="3"><v>45123</v></c>', "45123"),
        ],
    )
    def test_non_shared_values_verbatim(self, cell: str, expected: str) -> None:
        assert _stream(f'<row r="1">{cell}</row>') == [(1, 1, expected)]

    def test_inline_string(self) -> None:
        rows = '<row r="1"><c r="B1" t="inlineStr"><is><t>inline</t></is></c></row>'
        assert _stream(rows) == [(1, 2, "inline")]

    def test_inline_rich_text(self) -> None:
        rows = (
            '<row r="1"><c r="A1" t="inlineStr"><is>'
            "<r><t>rich</t></r><r><t> text</t></r>"
            '<rPh sb="0" eb="1"><t>skip</t></rPh>'
            "</is></c></row>"
        )
        assert _stream(rows) == [(1, 1, "rich text")]

    def test_empty_value_element_emits_empty_string(self) -> None:
        rows = '<row r="1"><c r="A1"><v></v></c></row>'
        assert _stream(rows) == [(1, 1, "")]

    def test_cell_without_value_skipped(self) -> None:
        rows = '<row r="1"><c r="A1" s="1"/><c r="B1"><f>SUM(C1)</f></c></row>'
        assert _stream(rows) == []

    def test_multiline_value_preserved(self) -> None:
        rows = '<row r="1"><c r="A1" t="str"><v>line1\nline2</v></c></row>'
        assert _stream(rows) == [(1, 1, "line1\nline2")]


class TestCoordinates:
    """Tests for row and column assignment."""

    def test_row_from_row_element(self) -> None:
        rows = '<row r="3"><c r="A3"><v>1</v></c><c r="C3"><v>2</v></c></row>'
        assert _stream(rows) == [(3, 1, "1"), (3, 3, "2")]

    def test_out_of_order_rows(self) -> None:
        """Each record takes the row number declared on its own row."""
        rows = (
            '<row r="5"><c r="A5"><v>five</v></c></row>'
            '<row r="2"><c r="A2"><v>two</v></c></row>'
        )
        assert _stream(rows) == [(5, 1, "five"), (2, 1, "two")]

    def test_row_element_wins_over_cell_reference(self) -> None:
        rows = '<row r="4"><c r="B9"><v>x</v></c></row>'
        assert _stream(rows) == [(4, 2, "x")]

    def test_missing_row_number_uses_cell_reference(self) -> None:
        rows = (
            '<row r="1"><c r="A1"><v>a</v></c></row>'
            '<row><c r="A7"><v>b</v></c></row>'
        )
        assert _stream(rows) == [(1, 1, "a"), (7, 1, "b")]

    def test_missing_row_and_reference_increments(self) -> None:
        rows = (
            '<row r="4"><c r="A4"><v>a</v></c></row>'
            "<row><c><v>b</v></c><c><v>c</v></c></row>"
        )
        assert _stream(rows) == [(4, 1, "a"), (5, 1, "b"), (5, 2, "c")]

    def test_unparsable_row_keeps_previous(self) -> None:
        rows = (
            '<row r="2"><c r="A2"><v>a</v></c></row>'
            '<row r="x"><c r="B3"><v>b</v></c></row>'
        )
        assert _stream(rows) == [(2, 1, "a"), (2, 2, "b")]

    @pytest.mark.parametrize("raw_row", ["-4", "0", "1_0", "+3", " 3"])
    def test_non_digit_row_keeps_previous(self, raw_row: str) -> None:
        """Only plain positive digits replace the current row number."""
        rows = (
            '<row r="2"><c r="A2"><v>a</v></c></row>'
            f'<row r="{raw_row}"><c r="A3"><v>b</v></c></row>'
        )
        assert _stream(rows) == [(2, 1, "a"), (2, 1, "b")]

    def test_cell_without_reference_follows_previous(self) -> None:
        rows = '<row r="1"><c r="C1"><v>c</v></c><c><v>d</v></c></row>'
        assert _stream(rows) == [(1, 3, "c"), (1, 4, "d")]

    def test_malformed_reference_degrades_to_column_zero(self) -> None:
        rows = '<row r="1"><c r="1A"><v>x</v></c></row>'
        assert _stream(rows) == [(1, 0, "x")]

    def test_wide_columns(self) -> None:
        rows = '<row r="1"><c r="XFD1"><v>edge</v></c></row>'
        assert _stream(rows) == [(1, 16384, "edge")]


class TestSheetStreamer:
    """Tests for SheetStreamer entry points."""

    def test_records_have_blank_sheet_and_no_merge(self) -> None:
        streamer = SheetStreamer()
        xml = sheet_xml('<row r="1"><c r="A1"><v>1</v></c></row>', merges=["A1:B1"])
        records = list(streamer.stream(io.BytesIO(xml.encode())))
        assert records == [ExtractedRecord("", 1, 1, "1")]

    def test_empty_table_is_kept(self) -> None:
        table = SharedStringTable()
        assert SheetStreamer(table).shared_strings is table

    def test_empty_sheet(self) -> None:
        assert _stream("") == []

    def test_truncated_sheet_raises_after_partial_output(self) -> None:
        xml = sheet_xml('<row r="1"><c r="A1"><v>1</v></c></row>')
        truncated = xml[: xml.index("</sheetData>")]
        stream = SheetStreamer().stream(
            io.BytesIO(truncated.encode()), member_name="xl/worksheets/sheet1.xml"
        )
        seen = []
        with pytest.raises(MalformedXMLError):
            for record in stream:
                seen.append(record)
        assert len(seen) == 1

    def test_read_sheet(self, make_workbook: Callable[..., Path]) -> None:
        member = "xl/worksheets/sheet1.xml"
        rows = "".join(
            f'<row r="{row}"><c r="A{row}"><v>{row}</v></c></row>'
            for row in range(1, 1001)
        )
        path = make_workbook({member: sheet_xml(rows)})
        with WorkbookContainer(path) as container:
            records = SheetStreamer(chunk_size=1024).read_sheet(container, member)
        assert len(records) == 1000
        assert records[-1] == ExtractedRecord("", 1000, 1, "1000")

    def test_read_sheet_missing_member(
        self, make_workbook: Callable[..., Path]
    ) -> None:
        path = make_workbook({"xl/workbook.xml": "<workbook/>"})
        with WorkbookContainer(path) as container:
            with pytest.raises(MemberNotFoundError):
                SheetStreamer().read_sheet(container, "xl/worksheets/sheet9.xml")
