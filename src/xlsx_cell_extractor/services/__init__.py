"""Services for xlsx cell extraction."""

from xlsx_cell_extractor.services.container import WorkbookContainer
from xlsx_cell_extractor.services.extraction_orchestrator import (
    ExtractionOptions,
    ExtractionOrchestrator,
)

__all__ = ["ExtractionOptions", "ExtractionOrchestrator", "WorkbookContainer"]
