"""Loader for the workbook's shared-string table."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from xlsx_cell_extractor.config import Settings
from xlsx_cell_extractor.config import settings as default_settings
from xlsx_cell_extractor.services.container import (
    SHARED_STRINGS_MEMBER,
    WorkbookContainer,
)
from xlsx_cell_extractor.services.xml_tokens import (
    EndElement,
    StartElement,
    Text,
    XMLToken,
    iter_tokens,
)
from xlsx_cell_extractor.utils.exceptions import ResourceLimitError
from xlsx_cell_extractor.utils.logging import get_logger

logger = get_logger(__name__)


class SharedStringTable:
    """Ordered, 0-indexed pool of strings referenced by ``t="s"`` cells."""

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items = list(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def get(self, index: int) -> str | None:
        """Return the entry at ``index`` or None when out of range."""
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def resolve(self, index_text: str) -> str:
        """Resolve a cell's raw index text to its string.

        Anything but plain ASCII digits, or an out-of-range index, resolves
        to ``""``.
        """
        digits = index_text.strip()
        if not digits.isascii() or not digits.isdigit():
            logger.debug("Non-numeric shared string index", index=index_text)
            return ""
        index = int(digits)
        value = self.get(index)
        if value is None:
            logger.debug(
                "Shared string index out of range", index=index, size=len(self)
            )
            return ""
        return value


def parse_shared_strings(
    tokens: Iterable[XMLToken],
    *,
    hard_limit: int | None = None,
) -> list[str]:
    """Collect one string per ``<si>`` from a token stream.

    Text of every ``<t>`` inside the item is concatenated, covering both
    plain items and rich-text runs. Phonetic hints (``<rPh>``) are skipped.

    Raises:
        ResourceLimitError: If more than ``hard_limit`` items are declared.
    """
    items: list[str] = []
    parts: list[str] | None = None
    in_text = False
    phonetic_depth = 0

    for token in tokens:
        if isinstance(token, StartElement):
            if token.name == "si":
                parts = []
            elif token.name == "rPh":
                phonetic_depth += 1
            elif token.name == "t":
                in_text = parts is not None and phonetic_depth == 0
        elif isinstance(token, Text):
            if in_text and parts is not None:
                parts.append(token.content)
        elif isinstance(token, EndElement):
            if token.name == "t":
                in_text = False
            elif token.name == "rPh":
                phonetic_depth -= 1
            elif token.name == "si" and parts is not None:
                items.append("".join(parts))
                parts = None
                if hard_limit is not None and len(items) > hard_limit:
                    raise ResourceLimitError("shared_strings", len(items), hard_limit)
    return items


def load_shared_strings(
    container: WorkbookContainer,
    *,
    settings: Settings | None = None,
) -> SharedStringTable:
    """Load the shared-string table, or an empty one if the member is absent.

    Raises:
        MalformedXMLError: If the member is not valid XML.
        ResourceLimitError: If the configured hard limit is exceeded.
    """
    cfg = settings or default_settings
    if not container.has_member(SHARED_STRINGS_MEMBER):
        logger.debug("Workbook has no shared strings member")
        return SharedStringTable()

    with container.open_member(SHARED_STRINGS_MEMBER) as stream:
        items = parse_shared_strings(
            iter_tokens(
                stream,
                member_name=SHARED_STRINGS_MEMBER,
                chunk_size=cfg.read_chunk_size,
            ),
            hard_limit=cfg.shared_strings_hard_limit,
        )

    if len(items) > cfg.shared_strings_warning_threshold:
        logger.warning(
            "Large shared strings dataset detected",
            count=len(items),
            threshold=cfg.shared_strings_warning_threshold,
        )
    else:
        logger.debug("Loaded shared strings", count=len(items))
    return SharedStringTable(items)
