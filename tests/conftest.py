"""Shared pytest fixtures for xlsx cell extraction tests."""

import os
from collections.abc import Callable, Generator, Mapping
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.fixtures import build_xlsx, shared_strings_xml, sheet_xml, workbook_xml
from xlsx_cell_extractor.config import Settings
from xlsx_cell_extractor.utils.logging import set_extra_context, set_run_id


@pytest.fixture(autouse=True)
def reset_log_context() -> Generator[None, None, None]:
    set_run_id(None)
    set_extra_context({})
    yield
    set_run_id(None)
    set_extra_context({})


@pytest.fixture
def settings() -> Settings:
    """Settings built from defaults only, ignoring the caller's environment."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def make_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a workbook archive from raw member contents."""

    def _make(
        members: Mapping[str, str | bytes], name: str = "book.xlsx"
    ) -> Path:
        return build_xlsx(tmp_path / name, members)

    return _make


@pytest.fixture
def simple_workbook(make_workbook: Callable[..., Path]) -> Path:
    """One sheet with a shared string in a one-cell merge and a number."""
    rows = (
        '<row r="1">'
        '<c r="A1" t="s"><v>0</v></c>'
        '<c r="B1" t="n"><v>42</v></c>'
        "</row>"
    )
    return make_workbook(
        {
            "xl/workbook.xml": workbook_xml([("Sheet1", "1")]),
            "xl/sharedStrings.xml": shared_strings_xml(["Hello"]),
            "xl/worksheets/sheet1.xml": sheet_xml(rows, merges=["A1:A1"]),
        }
    )


@pytest.fixture
def multi_sheet_workbook(make_workbook: Callable[..., Path]) -> Path:
    """Three sheets with distinct record counts and a 2x2 merge on Data."""
    summary_rows = '<row r="1"><c r="A1" t="s"><v>0</v></c></row>'
    data_rows = "".join(
        f'<row r="{row}">'
        f'<c r="A{row}"><v>{row}</v></c>'
        f'<c r="B{row}" t="s"><v>1</v></c>'
        f'<c r="C{row}"><v>{row * 10}</v></c>'
        "</row>"
        for row in range(1, 6)
    )
    notes_rows = (
        '<row r="2"><c r="D2" t="inlineStr"><is><t>note</t></is></c></row>'
        '<row r="4"><c r="A4" t="b"><v>1</v></c><c r="B4"/></row>'
    )
    return make_workbook(
        {
            "xl/workbook.xml": workbook_xml(
                [("Summary", "1"), ("Data", "2"), ("Notes", "3")]
            ),
            "xl/sharedStrings.xml": shared_strings_xml(["Total", "item"]),
            "xl/worksheets/sheet1.xml": sheet_xml(summary_rows),
            "xl/worksheets/sheet2.xml": sheet_xml(data_rows, merges=["B2:C3"]),
            "xl/worksheets/sheet3.xml": sheet_xml(notes_rows),
        }
    )
