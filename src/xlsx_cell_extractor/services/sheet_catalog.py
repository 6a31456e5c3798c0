"""Loader for the ordered sheet list declared in ``xl/workbook.xml``."""

from __future__ import annotations

from collections.abc import Iterable

from xlsx_cell_extractor.models import SheetDescriptor
from xlsx_cell_extractor.services.container import WORKBOOK_MEMBER, WorkbookContainer
from xlsx_cell_extractor.services.xml_tokens import (
    DEFAULT_CHUNK_SIZE,
    EndElement,
    StartElement,
    XMLToken,
    iter_tokens,
)
from xlsx_cell_extractor.utils.logging import get_logger

logger = get_logger(__name__)


def parse_sheet_catalog(tokens: Iterable[XMLToken]) -> list[SheetDescriptor]:
    """Collect ``<sheet name=... sheetId=...>`` entries inside ``<sheets>``.

    Document order is preserved. Entries without a ``sheetId`` cannot be
    mapped to a member and are skipped.
    """
    sheets: list[SheetDescriptor] = []
    in_sheets = False
    for token in tokens:
        if isinstance(token, StartElement):
            if token.name == "sheets":
                in_sheets = True
            elif token.name == "sheet" and in_sheets:
                name = token.attrs.get("name", "")
                sheet_id = token.attrs.get("sheetId", "").strip()
                if not sheet_id:
                    logger.warning("Skipping sheet without sheetId", sheet=name)
                    continue
                sheets.append(SheetDescriptor(name=name, sheet_id=sheet_id))
        elif isinstance(token, EndElement) and token.name == "sheets":
            in_sheets = False
    return sheets


def load_sheet_catalog(
    container: WorkbookContainer, *, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> list[SheetDescriptor]:
    """Read the workbook manifest into sheet descriptors.

    Raises:
        MemberNotFoundError: If ``xl/workbook.xml`` is missing.
        MalformedXMLError: If the manifest is not valid XML.
    """
    with container.open_member(WORKBOOK_MEMBER) as stream:
        sheets = parse_sheet_catalog(
            iter_tokens(stream, member_name=WORKBOOK_MEMBER, chunk_size=chunk_size)
        )
    logger.debug(
        "Loaded sheet catalog",
        count=len(sheets),
        sheets=[sheet.name for sheet in sheets],
    )
    return sheets
