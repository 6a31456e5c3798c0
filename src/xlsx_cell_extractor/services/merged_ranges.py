"""Merged-cell declarations and the coordinate lookup derived from them."""

from __future__ import annotations

from collections.abc import Iterable
from typing import IO

from xlsx_cell_extractor.config import Settings
from xlsx_cell_extractor.config import settings as default_settings
from xlsx_cell_extractor.models import MergedRange
from xlsx_cell_extractor.services.container import WorkbookContainer
from xlsx_cell_extractor.services.reference_codec import decode_range
from xlsx_cell_extractor.services.xml_tokens import StartElement, XMLToken, iter_tokens
from xlsx_cell_extractor.utils.exceptions import (
    InvalidReferenceError,
    ResourceLimitError,
)
from xlsx_cell_extractor.utils.logging import get_logger

logger = get_logger(__name__)


class MergeLookup:
    """Coordinate -> range label lookup for one sheet.

    Small ranges are expanded cell by cell into a dict. Ranges too large to
    expand are kept as rectangles and matched by containment.
    """

    def __init__(
        self,
        cells: dict[tuple[int, int], str] | None = None,
        oversized: list[MergedRange] | None = None,
    ) -> None:
        self.cells = cells or {}
        self.oversized = oversized or []

    def __len__(self) -> int:
        return len(self.cells) + sum(rng.area for rng in self.oversized)

    def __bool__(self) -> bool:
        return bool(self.cells) or bool(self.oversized)

    def label_for(self, column: int, row: int) -> str | None:
        label = self.cells.get((column, row))
        if label is not None:
            return label
        for rng in self.oversized:
            if rng.contains(column, row):
                return rng.label
        return None


def parse_merge_declarations(tokens: Iterable[XMLToken]) -> list[MergedRange]:
    """Collect ``<mergeCell ref="A1:B2"/>`` declarations in document order.

    Declarations whose reference cannot be decoded are skipped.
    """
    ranges: list[MergedRange] = []
    for token in tokens:
        if not isinstance(token, StartElement) or token.name != "mergeCell":
            continue
        ref = token.attrs.get("ref", "")
        try:
            ranges.append(decode_range(ref))
        except InvalidReferenceError as exc:
            logger.warning(
                "Skipping malformed merge declaration", ref=ref, reason=exc.reason
            )
    return ranges


class MergedRangeExtractor:
    """Reads a sheet's merge declarations and expands them into a lookup."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings

    def read_ranges(
        self, stream: IO[bytes], *, member_name: str | None = None
    ) -> list[MergedRange]:
        return parse_merge_declarations(
            iter_tokens(
                stream,
                member_name=member_name,
                chunk_size=self.settings.read_chunk_size,
            )
        )

    def build_lookup(self, ranges: Iterable[MergedRange]) -> MergeLookup:
        """Expand each rectangle into every (column, row) it covers.

        Raises:
            ResourceLimitError: If the total declared area exceeds
                ``merge_area_hard_limit``.
        """
        ranges = list(ranges)
        hard_limit = self.settings.merge_area_hard_limit
        if hard_limit is not None:
            total_area = sum(rng.area for rng in ranges)
            if total_area > hard_limit:
                raise ResourceLimitError("merged_area", total_area, hard_limit)

        cells: dict[tuple[int, int], str] = {}
        oversized: list[MergedRange] = []
        for rng in ranges:
            label = rng.label
            if rng.area > self.settings.merge_expansion_limit:
                logger.warning(
                    "Merged range too large to expand; using containment lookup",
                    range=label,
                    area=rng.area,
                    limit=self.settings.merge_expansion_limit,
                )
                oversized.append(rng)
                continue
            for column in range(rng.start.column, rng.end.column + 1):
                for row in range(rng.start.row, rng.end.row + 1):
                    cells[(column, row)] = label
        return MergeLookup(cells, oversized)

    def read_lookup(
        self, container: WorkbookContainer, member_name: str
    ) -> MergeLookup:
        """Open a sheet member and build its merge lookup.

        Raises:
            MemberNotFoundError: If the sheet member is missing.
            MalformedXMLError: If the sheet XML is invalid.
            ResourceLimitError: If the merged area hard limit is exceeded.
        """
        with container.open_member(member_name) as stream:
            ranges = self.read_ranges(stream, member_name=member_name)
        lookup = self.build_lookup(ranges)
        logger.debug(
            "Built merge lookup",
            member=member_name,
            ranges=len(ranges),
            cells=len(lookup),
        )
        return lookup
