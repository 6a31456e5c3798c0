"""Workbook builders for tests.

Test workbooks are written as raw ZIP archives holding hand-written
SpreadsheetML parts, so each test controls the exact XML the extractor sees.

Usage:
    from tests.fixtures import build_xlsx, sheet_xml, workbook_xml

    path = build_xlsx(
        tmp_path / "book.xlsx",
        {
            "xl/workbook.xml": workbook_xml([("Sheet1", "1")]),
            "xl/worksheets/sheet1.xml": sheet_xml('<row r="1">...</row>'),
        },
    )
"""

import zipfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"


def workbook_xml(sheets: Iterable[tuple[str, str | None]]) -> str:
    """Render ``xl/workbook.xml`` for ``(name, sheet_id)`` pairs.

    A ``None`` sheet id omits the ``sheetId`` attribute.
    """
    entries = []
    for index, (name, sheet_id) in enumerate(sheets, start=1):
        id_attr = f" sheetId={quoteattr(sheet_id)}" if sheet_id is not None else ""
        entries.append(f'<sheet name={quoteattr(name)}{id_attr} r:id="rId{index}"/>')
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        f"<sheets>{''.join(entries)}</sheets>"
        "</workbook>"
    )


def shared_strings_xml(strings: Iterable[str]) -> str:
    """Render ``xl/sharedStrings.xml`` with one plain ``<si>`` per string."""
    items = [f"<si><t>{escape(value)}</t></si>" for value in strings]
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<sst xmlns="{MAIN_NS}" count="{len(items)}" uniqueCount="{len(items)}">'
        f"{''.join(items)}"
        "</sst>"
    )


def sheet_xml(rows: str = "", merges: Iterable[str] = ()) -> str:
    """Render a worksheet with raw ``<row>`` markup and merge declarations."""
    merges = list(merges)
    merge_block = ""
    if merges:
        cells = "".join(f'<mergeCell ref="{ref}"/>' for ref in merges)
        merge_block = f'<mergeCells count="{len(merges)}">{cells}</mergeCells>'
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<worksheet xmlns="{MAIN_NS}">'
        f"<sheetData>{rows}</sheetData>"
        f"{merge_block}"
        "</worksheet>"
    )


def build_xlsx(path: Path, members: Mapping[str, str | bytes]) -> Path:
    """Write ``members`` into a deflate-compressed ZIP at ``path``."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return path
