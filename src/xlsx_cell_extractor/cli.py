"""Command-line entry point: extract an XLSX workbook to CSV, JSON or Parquet.

Usage:
    xlsx-cells [options] <xlsx_file> <target_file>

The output format follows the target file's extension.
"""

from __future__ import annotations

import argparse
import cProfile
import logging
import sys
import tracemalloc
from collections.abc import Sequence

from xlsx_cell_extractor.config import Settings, validate_settings_on_startup
from xlsx_cell_extractor.config import settings as default_settings
from xlsx_cell_extractor.output.writers import detect_format, write_records
from xlsx_cell_extractor.services.extraction_orchestrator import (
    ExtractionOptions,
    ExtractionOrchestrator,
)
from xlsx_cell_extractor.utils.exceptions import (
    ExtractionStageError,
    OutputError,
    XCEError,
)
from xlsx_cell_extractor.utils.logging import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xlsx-cells",
        description="Extract every cell of an XLSX workbook into a flat "
        "CSV, JSON or Parquet file.",
    )
    parser.add_argument("xlsx_file", help="Path to the .xlsx workbook")
    parser.add_argument(
        "target_file", help="Output path; extension selects csv, json or parquet"
    )
    parser.add_argument(
        "--sheet",
        action="append",
        dest="sheets",
        metavar="NAME",
        help="Only extract this sheet (repeatable)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Maximum number of sheets extracted concurrently",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override XCE_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--cpu-profile",
        metavar="FILE",
        default=None,
        help="Write a cProfile dump of the extraction to FILE",
    )
    parser.add_argument(
        "--mem-profile",
        metavar="FILE",
        default=None,
        help="Write a tracemalloc snapshot taken after extraction to FILE",
    )
    return parser


def _resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    overrides: dict[str, object] = {}
    if args.max_workers is not None:
        overrides["max_workers"] = args.max_workers
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if not overrides:
        return base
    return Settings.model_validate({**base.model_dump(), **overrides})


def run(
    argv: Sequence[str] | None = None, base_settings: Settings | None = None
) -> int:
    """Run the CLI and return a process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = _resolve_settings(args, base_settings or default_settings)
    except ValueError as e:
        parser.print_usage(sys.stderr)
        print(f"xlsx-cells: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(cfg.log_level)
    validate_settings_on_startup(cfg)

    try:
        detect_format(args.target_file)
    except OutputError as e:
        logger.error(str(e))
        return EXIT_USAGE

    orchestrator = ExtractionOrchestrator(cfg)
    options = ExtractionOptions(sheet_names=args.sheets)
    profiler = cProfile.Profile() if args.cpu_profile else None

    try:
        if profiler is not None:
            profiler.enable()
        if args.mem_profile:
            tracemalloc.start()
        try:
            result = orchestrator.extract(args.xlsx_file, options)
        finally:
            if profiler is not None:
                profiler.disable()
                profiler.dump_stats(args.cpu_profile)
            if args.mem_profile:
                tracemalloc.take_snapshot().dump(args.mem_profile)
                tracemalloc.stop()
    except ExtractionStageError as e:
        logger.error(f"Extraction failed at stage '{e.stage}': {e.cause}")
        return EXIT_FAILURE
    except XCEError as e:
        logger.error(f"Extraction failed: {e}")
        return EXIT_FAILURE

    for failure in result.failures:
        logger.warning(
            f"Sheet '{failure.sheet_name}' skipped "
            f"[{failure.error_code}] {failure.message}"
        )

    try:
        write_records(result.records, args.target_file, settings=cfg)
    except OutputError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    if result.failures:
        logger.warning(
            f"{len(result.failures)} of {len(result.sheets)} sheets failed; "
            "output contains the remaining sheets"
        )
    return EXIT_OK
