"""Conversion between A1-style cell references and numeric coordinates.

Columns use bijective base-26 letters (A=1 ... Z=26, AA=27) and rows are
1-based decimal numbers. ``decode_reference`` fails hard with
``InvalidReferenceError``; ``try_decode_reference`` and ``decode_column``
fail soft by returning None so each caller decides how to degrade.
"""

from __future__ import annotations

from xlsx_cell_extractor.models import CellCoordinate, MergedRange
from xlsx_cell_extractor.utils.exceptions import ErrorCode, InvalidReferenceError

MAX_COLUMN = 16_384
MAX_ROW = 1_048_576


def _split_reference(text: str) -> tuple[int, str]:
    """Return the column number of the leading letter run and the remainder."""
    column = 0
    for index, char in enumerate(text):
        if "A" <= char <= "Z":
            column = column * 26 + (ord(char) - ord("A") + 1)
        else:
            return column, text[index:]
    return column, ""


def decode_reference(text: str) -> CellCoordinate:
    """Decode a reference such as ``"AA12"`` into ``CellCoordinate(27, 12)``.

    Raises:
        InvalidReferenceError: If the letter or digit part is missing or
            malformed, or the row is zero.
    """
    column, rest = _split_reference(text)
    if column == 0:
        raise InvalidReferenceError(text, "missing column letters")
    if not rest:
        raise InvalidReferenceError(text, "missing row number")
    row = parse_row_number(rest)
    if row is None:
        if rest.isascii() and rest.isdigit():
            raise InvalidReferenceError(text, "row number must be positive")
        raise InvalidReferenceError(text, f"malformed row number {rest!r}")
    return CellCoordinate(column=column, row=row)


def parse_row_number(text: str | None) -> int | None:
    """Parse a 1-based row number, returning None unless it is plain digits."""
    if not text or not text.isascii() or not text.isdigit():
        return None
    row = int(text)
    return row if row >= 1 else None


def try_decode_reference(text: str | None) -> CellCoordinate | None:
    """Decode a reference, returning None instead of raising."""
    if not text:
        return None
    try:
        return decode_reference(text)
    except InvalidReferenceError:
        return None


def decode_column(text: str | None) -> int | None:
    """Decode only the column letters of a reference.

    The row part is ignored, so ``"C"`` and ``"C7"`` both yield 3. Returns
    None when the text has no leading uppercase letters.
    """
    if not text:
        return None
    column, _ = _split_reference(text)
    return column or None


def encode_column(column: int) -> str:
    """Encode a 1-based column number as letters (27 -> ``"AA"``)."""
    if column < 1:
        raise InvalidReferenceError(repr(column), "column must be positive")
    letters: list[str] = []
    while column > 0:
        letters.append(chr(ord("A") + (column - 1) % 26))
        column = (column - 1) // 26
    return "".join(reversed(letters))


def encode_reference(column: int, row: int) -> str:
    """Encode a coordinate as reference text (``(2, 7)`` -> ``"B7"``)."""
    if row < 1:
        raise InvalidReferenceError(repr((column, row)), "row must be positive")
    return f"{encode_column(column)}{row}"


def decode_range(text: str) -> MergedRange:
    """Decode a range declaration such as ``"B2:C3"``.

    A bare reference (``"C3"``) is treated as a one-cell range. Reversed
    corners are normalized by ``MergedRange``.

    Raises:
        InvalidReferenceError: If either corner fails to decode.
    """
    parts = text.split(":")
    if len(parts) == 1:
        parts = [parts[0], parts[0]]
    if len(parts) != 2:
        raise InvalidReferenceError(
            text, "expected START:END", error_code=ErrorCode.INVALID_RANGE
        )
    try:
        start = decode_reference(parts[0])
        end = decode_reference(parts[1])
    except InvalidReferenceError as exc:
        raise InvalidReferenceError(
            text, exc.reason, error_code=ErrorCode.INVALID_RANGE
        ) from exc
    return MergedRange(start=start, end=end)
