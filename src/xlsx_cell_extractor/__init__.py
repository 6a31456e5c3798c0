"""XLSX Cell Extractor - concurrent cell extraction from spreadsheet containers."""

from xlsx_cell_extractor.models import ExtractedRecord, ExtractionResult
from xlsx_cell_extractor.services.extraction_orchestrator import (
    ExtractionOptions,
    ExtractionOrchestrator,
)

__all__ = [
    "ExtractedRecord",
    "ExtractionOptions",
    "ExtractionOrchestrator",
    "ExtractionResult",
    "main",
]
__version__ = "0.1.0"


def main() -> None:
    """Run the command-line interface."""
    import sys

    from xlsx_cell_extractor.cli import run

    sys.exit(run())
