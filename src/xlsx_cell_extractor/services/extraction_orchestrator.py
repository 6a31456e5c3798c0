"""Concurrent extraction of cell records across every sheet of a workbook."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextvars import copy_context
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, TypeVar
from uuid import uuid4

from xlsx_cell_extractor.config import Settings
from xlsx_cell_extractor.config import settings as default_settings
from xlsx_cell_extractor.models import (
    ExtractedRecord,
    ExtractionResult,
    SheetDescriptor,
    SheetFailure,
)
from xlsx_cell_extractor.services.container import WorkbookContainer
from xlsx_cell_extractor.services.merged_ranges import (
    MergedRangeExtractor,
    MergeLookup,
)
from xlsx_cell_extractor.services.shared_strings import (
    SharedStringTable,
    load_shared_strings,
)
from xlsx_cell_extractor.services.sheet_catalog import load_sheet_catalog
from xlsx_cell_extractor.services.sheet_streamer import SheetStreamer
from xlsx_cell_extractor.utils.exceptions import (
    ErrorCode,
    ExtractionStageError,
    SheetNotFoundError,
    XCEError,
)
from xlsx_cell_extractor.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ExtractionOptions:
    """Options controlling which sheets are extracted."""

    sheet_names: list[str] | None = None


class ExtractionOrchestrator:
    """Extract flat cell records from an XLSX workbook.

    One task per catalogued sheet is submitted to a thread pool before any
    is awaited. Each task streams its sheet into a local buffer; buffers are
    merged in catalog order once every task has finished. A failing sheet is
    logged and reported in ``ExtractionResult.failures`` without affecting
    the others.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings
        self.merge_extractor = MergedRangeExtractor(self.settings)

    def extract(
        self, file_path: Path | str, options: ExtractionOptions | None = None
    ) -> ExtractionResult:
        """Extract every sheet of the workbook at ``file_path``.

        Raises:
            ExtractionStageError: If the container cannot be opened, the
                catalog cannot be loaded, or the shared strings breach their
                hard limit.
            SheetNotFoundError: If ``options.sheet_names`` names an unknown
                sheet.
        """
        opts = options or ExtractionOptions()
        with LogContext(run_id=uuid4().hex[:12]):
            with timed_operation(logger, "workbook_extraction") as metrics:
                try:
                    container = WorkbookContainer(file_path)
                except XCEError as exc:
                    raise ExtractionStageError("open_container", exc) from exc

                with container:
                    sheets = self._run_stage(
                        "load_catalog",
                        load_sheet_catalog,
                        container,
                        chunk_size=self.settings.read_chunk_size,
                    )
                    sheets = self._select_sheets(sheets, opts.sheet_names)
                    shared_strings = self._run_stage(
                        "load_shared_strings",
                        load_shared_strings,
                        container,
                        settings=self.settings,
                    )
                    logger.info(
                        "Extracting workbook",
                        path=str(file_path),
                        sheets=len(sheets),
                        shared_strings=len(shared_strings),
                    )
                    records, failures = self._extract_sheets(
                        container, sheets, shared_strings
                    )

                metrics.sheets_processed = len(sheets) - len(failures)
                metrics.sheets_failed = len(failures)
                metrics.records_emitted = len(records)

        return ExtractionResult(records=records, failures=failures, sheets=sheets)

    def extract_sheet(
        self,
        container: WorkbookContainer,
        sheet: SheetDescriptor,
        shared_strings: SharedStringTable,
    ) -> list[ExtractedRecord]:
        """Extract and annotate the records of a single sheet.

        Raises:
            XCEError: Any failure reading or decoding the sheet member.
        """
        with LogContext(sheet=sheet.name):
            streamer = SheetStreamer(
                shared_strings, chunk_size=self.settings.read_chunk_size
            )
            raw_records = streamer.read_sheet(container, sheet.member_name)
            lookup = self.merge_extractor.read_lookup(container, sheet.member_name)
            records = [
                self._annotate(record, sheet.name, lookup) for record in raw_records
            ]
            logger.debug("Sheet extracted", records=len(records))
            return records

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _run_stage(
        stage: str, func: Callable[..., T], *args: Any, **kwargs: Any
    ) -> T:
        """Run a run-level stage, wrapping failures with the stage name."""
        try:
            return func(*args, **kwargs)
        except XCEError as exc:
            logger.error(f"Extraction stage failed: {stage}", error=str(exc))
            raise ExtractionStageError(stage, exc) from exc

    @staticmethod
    def _select_sheets(
        sheets: list[SheetDescriptor], names: list[str] | None
    ) -> list[SheetDescriptor]:
        if not names:
            return sheets
        available = [sheet.name for sheet in sheets]
        for name in names:
            if name not in available:
                raise SheetNotFoundError(name, available)
        wanted = set(names)
        return [sheet for sheet in sheets if sheet.name in wanted]

    @staticmethod
    def _annotate(
        record: ExtractedRecord, sheet_name: str, lookup: MergeLookup
    ) -> ExtractedRecord:
        label = lookup.label_for(record.column_number, record.row_number)
        if label is None:
            return replace(record, sheet_name=sheet_name)
        return replace(record, sheet_name=sheet_name, merged=True, merged_range=label)

    def _extract_sheets(
        self,
        container: WorkbookContainer,
        sheets: list[SheetDescriptor],
        shared_strings: SharedStringTable,
    ) -> tuple[list[ExtractedRecord], list[SheetFailure]]:
        if not sheets:
            logger.warning("Workbook catalog lists no sheets")
            return [], []

        max_workers = min(len(sheets), self.settings.max_workers or len(sheets))
        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="xlsx-sheet"
        ) as executor:
            futures: list[Future[list[ExtractedRecord]]] = [
                executor.submit(
                    copy_context().run,
                    self.extract_sheet,
                    container,
                    sheet,
                    shared_strings,
                )
                for sheet in sheets
            ]
            wait(futures)

        records: list[ExtractedRecord] = []
        failures: list[SheetFailure] = []
        for done, (sheet, future) in enumerate(zip(sheets, futures), start=1):
            try:
                records.extend(future.result())
            except XCEError as exc:
                logger.error(
                    "Failed to extract sheet",
                    sheet=sheet.name,
                    error=str(exc),
                )
                failures.append(
                    SheetFailure(
                        sheet_name=sheet.name,
                        member_name=sheet.member_name,
                        error_code=exc.error_code.value,
                        message=exc.message,
                    )
                )
            except Exception as exc:
                logger.error(
                    "Unexpected error extracting sheet",
                    exc_info=self.settings.debug,
                    sheet=sheet.name,
                    error=repr(exc),
                )
                failures.append(
                    SheetFailure(
                        sheet_name=sheet.name,
                        member_name=sheet.member_name,
                        error_code=ErrorCode.UNEXPECTED_ERROR.value,
                        message=str(exc),
                    )
                )
            logger.log_progress("sheets", done, len(sheets), details=sheet.name)
        return records, failures
