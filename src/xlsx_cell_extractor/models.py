"""Dataclasses representing workbook structure and extracted cell records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

WORKSHEET_MEMBER_TEMPLATE = "xl/worksheets/sheet{sheet_id}.xml"


@dataclass(frozen=True)
class CellCoordinate:
    """A 1-based (column, row) position on a worksheet."""

    column: int
    row: int


@dataclass(frozen=True)
class SheetDescriptor:
    """A worksheet entry from the workbook catalog."""

    name: str
    sheet_id: str

    @property
    def member_name(self) -> str:
        """Archive member holding this sheet's XML."""
        return WORKSHEET_MEMBER_TEMPLATE.format(sheet_id=self.sheet_id)


@dataclass(frozen=True)
class MergedRange:
    """An inclusive rectangle of merged cells.

    Instances are normalized on creation so that ``start`` is the top-left
    and ``end`` the bottom-right corner.
    """

    start: CellCoordinate
    end: CellCoordinate

    def __post_init__(self) -> None:
        top_left = CellCoordinate(
            min(self.start.column, self.end.column), min(self.start.row, self.end.row)
        )
        bottom_right = CellCoordinate(
            max(self.start.column, self.end.column), max(self.start.row, self.end.row)
        )
        object.__setattr__(self, "start", top_left)
        object.__setattr__(self, "end", bottom_right)

    @property
    def label(self) -> str:
        """Reference-text form, e.g. 'B2:C3'."""
        from xlsx_cell_extractor.services.reference_codec import encode_reference

        start = encode_reference(self.start.column, self.start.row)
        end = encode_reference(self.end.column, self.end.row)
        return f"{start}:{end}"

    @property
    def width(self) -> int:
        return self.end.column - self.start.column + 1

    @property
    def height(self) -> int:
        return self.end.row - self.start.row + 1

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, column: int, row: int) -> bool:
        return (
            self.start.column <= column <= self.end.column
            and self.start.row <= row <= self.end.row
        )


@dataclass(frozen=True)
class ExtractedRecord:
    """A single cell value extracted from a worksheet.

    The streamer creates records with a blank ``sheet_name`` and no merge
    information; the orchestrator derives the final annotated record.
    """

    sheet_name: str
    row_number: int
    column_number: int
    sheet_value: str
    merged: bool = False
    merged_range: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheet_name": self.sheet_name,
            "row_number": self.row_number,
            "column_number": self.column_number,
            "sheet_value": self.sheet_value,
            "merged": self.merged,
            "merged_range": self.merged_range,
        }


@dataclass(frozen=True)
class SheetFailure:
    """A sheet whose extraction failed and was left out of the aggregate."""

    sheet_name: str
    member_name: str
    error_code: str
    message: str


@dataclass
class ExtractionResult:
    """Aggregate output of a workbook extraction run."""

    records: list[ExtractedRecord]
    failures: list[SheetFailure]
    sheets: list[SheetDescriptor]

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def succeeded(self) -> bool:
        """True when every catalogued sheet was extracted."""
        return not self.failures

    @property
    def partially_failed(self) -> bool:
        """True when some, but not all, sheets failed."""
        return bool(self.failures) and len(self.failures) < len(self.sheets)

    def records_for(self, sheet_name: str) -> list[ExtractedRecord]:
        return [record for record in self.records if record.sheet_name == sheet_name]
