"""Read access to the members of an XLSX (ZIP) container."""

from __future__ import annotations

import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

from xlsx_cell_extractor.models import WORKSHEET_MEMBER_TEMPLATE
from xlsx_cell_extractor.utils.exceptions import (
    ContainerError,
    ContainerNotFoundError,
    InvalidContainerError,
    MemberNotFoundError,
)
from xlsx_cell_extractor.utils.logging import get_logger

logger = get_logger(__name__)

WORKBOOK_MEMBER = "xl/workbook.xml"
SHARED_STRINGS_MEMBER = "xl/sharedStrings.xml"


def sheet_member_name(sheet_id: str) -> str:
    """Return the member path for a catalog ``sheetId``."""
    return WORKSHEET_MEMBER_TEMPLATE.format(sheet_id=sheet_id)


class WorkbookContainer:
    """Named-member access into an XLSX archive.

    The archive index is read once on open and shared read-only. Each call
    to ``open_member`` returns an independent stream, so worker threads can
    read different members concurrently.

    Usage:
        with WorkbookContainer(path) as container:
            with container.open_member(WORKBOOK_MEMBER) as stream:
                ...
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        if not self.path.exists():
            raise ContainerNotFoundError(str(self.path))
        if not zipfile.is_zipfile(self.path):
            raise InvalidContainerError(str(self.path))
        try:
            self._archive = zipfile.ZipFile(self.path, "r")
        except (zipfile.BadZipFile, OSError) as exc:
            raise InvalidContainerError(str(self.path), str(exc)) from exc
        self._names = frozenset(self._archive.namelist())
        logger.debug(
            "Opened workbook container",
            path=str(self.path),
            members=len(self._names),
        )

    def __enter__(self) -> WorkbookContainer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self._archive.close()

    def member_names(self) -> list[str]:
        return sorted(self._names)

    def has_member(self, name: str) -> bool:
        return name in self._names

    @contextmanager
    def open_member(self, name: str) -> Iterator[IO[bytes]]:
        """Open a member for streamed reading.

        The stream is closed when the context exits, including on error.

        Raises:
            MemberNotFoundError: If no member has this exact name.
            ContainerError: If the member's compressed data cannot be read.
        """
        if name not in self._names:
            raise MemberNotFoundError(name, file_path=str(self.path))
        try:
            stream = self._archive.open(name, "r")
        except (zipfile.BadZipFile, OSError, RuntimeError) as exc:
            raise ContainerError(
                f"Cannot open member {name}: {exc}", file_path=str(self.path)
            ) from exc
        try:
            yield stream
        finally:
            stream.close()
