"""Streaming extraction of cell records from one worksheet member.

The streamer walks the token stream of ``xl/worksheets/sheetN.xml`` with an
explicit state machine:

    OUTSIDE_ROW --<row>--> IN_ROW --<c>--> IN_CELL
         ^                  |  ^              |
         +-----</row>-------+  +----</c>------+

Row numbers come from the enclosing ``<row r="...">`` element. When a row
element has no ``r`` attribute the cell's own reference supplies the row,
and when that is missing too the row is the previous one plus one. An
unparsable ``r`` keeps the previous row number.

Columns come from the cell's ``r`` attribute. A cell without one follows
the previous cell in the row; a malformed one degrades to column 0.

Values are passed through as text. Only ``t="s"`` cells are resolved, via
the shared-string table; inline strings (``<is>``) contribute their ``<t>``
text and formulas (``<f>``) are ignored in favour of their cached ``<v>``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import IO

from xlsx_cell_extractor.models import ExtractedRecord
from xlsx_cell_extractor.services.container import WorkbookContainer
from xlsx_cell_extractor.services.reference_codec import (
    decode_column,
    parse_row_number,
    try_decode_reference,
)
from xlsx_cell_extractor.services.shared_strings import SharedStringTable
from xlsx_cell_extractor.services.xml_tokens import (
    DEFAULT_CHUNK_SIZE,
    EndElement,
    StartElement,
    Text,
    XMLToken,
    iter_tokens,
)
from xlsx_cell_extractor.utils.logging import get_logger

logger = get_logger(__name__)

SHARED_STRING_TYPE = "s"


class StreamState(str, Enum):
    OUTSIDE_ROW = "outside_row"
    IN_ROW = "in_row"
    IN_CELL = "in_cell"


@dataclass
class _PendingCell:
    row: int
    column: int
    cell_type: str
    parts: list[str] = field(default_factory=list)
    has_value: bool = False


class _SheetStateMachine:
    """Consumes tokens one at a time and returns a record when a cell closes."""

    def __init__(self, shared_strings: SharedStringTable) -> None:
        self.shared_strings = shared_strings
        self.state = StreamState.OUTSIDE_ROW
        self.current_row = 0
        self.row_declared = True
        self.last_column = 0
        self.cell: _PendingCell | None = None
        self.capturing = False
        self.in_inline = False
        self.phonetic_depth = 0

    def feed(self, token: XMLToken) -> ExtractedRecord | None:
        if self.state is StreamState.OUTSIDE_ROW:
            if isinstance(token, StartElement) and token.name == "row":
                self._start_row(token)
        elif self.state is StreamState.IN_ROW:
            if isinstance(token, StartElement) and token.name == "c":
                self._start_cell(token)
            elif isinstance(token, EndElement) and token.name == "row":
                self.state = StreamState.OUTSIDE_ROW
        else:
            return self._feed_cell(token)
        return None

    def _start_row(self, token: StartElement) -> None:
        self.state = StreamState.IN_ROW
        self.last_column = 0
        raw_row = token.attrs.get("r")
        if raw_row is None:
            self.row_declared = False
            self.current_row += 1
            return
        self.row_declared = True
        row = parse_row_number(raw_row)
        if row is None:
            logger.debug("Unparsable row number; keeping previous", r=raw_row)
        else:
            self.current_row = row

    def _start_cell(self, token: StartElement) -> None:
        self.state = StreamState.IN_CELL
        ref = token.attrs.get("r")
        row = self.current_row

        if ref is None:
            column = self.last_column + 1
        else:
            column = decode_column(ref) or 0
            if column == 0:
                logger.debug("Malformed cell reference", ref=ref)

        if not self.row_declared:
            coordinate = try_decode_reference(ref)
            if coordinate is not None:
                row = coordinate.row
                self.current_row = row

        if column:
            self.last_column = column
        self.cell = _PendingCell(
            row=row, column=column, cell_type=token.attrs.get("t", "n")
        )

    def _feed_cell(self, token: XMLToken) -> ExtractedRecord | None:
        cell = self.cell
        if cell is None:
            return None
        if isinstance(token, StartElement):
            if token.name == "v":
                cell.has_value = True
                self.capturing = True
            elif token.name == "is":
                cell.has_value = True
                self.in_inline = True
            elif token.name == "rPh":
                self.phonetic_depth += 1
            elif token.name == "t" and self.in_inline and not self.phonetic_depth:
                self.capturing = True
        elif isinstance(token, Text):
            if self.capturing:
                cell.parts.append(token.content)
        elif token.name in ("v", "t"):
            self.capturing = False
        elif token.name == "is":
            self.in_inline = False
        elif token.name == "rPh":
            self.phonetic_depth -= 1
        elif token.name == "c":
            return self._finish_cell(cell)
        return None

    def _finish_cell(self, cell: _PendingCell) -> ExtractedRecord | None:
        self.state = StreamState.IN_ROW
        self.cell = None
        self.capturing = False
        self.in_inline = False
        self.phonetic_depth = 0
        if not cell.has_value:
            return None
        raw = "".join(cell.parts)
        if cell.cell_type == SHARED_STRING_TYPE:
            value = self.shared_strings.resolve(raw)
        else:
            value = raw
        return ExtractedRecord(
            sheet_name="",
            row_number=cell.row,
            column_number=cell.column,
            sheet_value=value,
        )


class SheetStreamer:
    """Extracts raw cell records from worksheet XML.

    Records are produced in document order with a blank sheet name and no
    merge information.
    """

    def __init__(
        self,
        shared_strings: SharedStringTable | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.shared_strings = (
            shared_strings if shared_strings is not None else SharedStringTable()
        )
        self.chunk_size = chunk_size

    def stream_tokens(self, tokens: Iterable[XMLToken]) -> Iterator[ExtractedRecord]:
        machine = _SheetStateMachine(self.shared_strings)
        for token in tokens:
            record = machine.feed(token)
            if record is not None:
                yield record

    def stream(
        self, stream: IO[bytes], *, member_name: str | None = None
    ) -> Iterator[ExtractedRecord]:
        """Yield records from a worksheet byte stream.

        Raises:
            MalformedXMLError: If the XML is invalid or truncated. Records
                already yielded stay valid; the caller decides whether to
                keep them.
        """
        return self.stream_tokens(
            iter_tokens(stream, member_name=member_name, chunk_size=self.chunk_size)
        )

    def read_sheet(
        self, container: WorkbookContainer, member_name: str
    ) -> list[ExtractedRecord]:
        """Read every record of a worksheet member.

        Raises:
            MemberNotFoundError: If the member is missing.
            MalformedXMLError: If the XML is invalid or truncated.
        """
        with container.open_member(member_name) as stream:
            records = list(self.stream(stream, member_name=member_name))
        logger.debug("Streamed sheet", member=member_name, records=len(records))
        return records
