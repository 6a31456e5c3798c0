"""Utilities package for xlsx cell extraction.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from xlsx_cell_extractor.utils.exceptions import (
    ContainerError,
    ContentError,
    ErrorCode,
    ExtractionError,
    ExtractionStageError,
    MalformedXMLError,
    MemberNotFoundError,
    ResourceLimitError,
    XCEError,
)
from xlsx_cell_extractor.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Exceptions
    "ContainerError",
    "ContentError",
    "ErrorCode",
    "ExtractionError",
    "ExtractionStageError",
    "MalformedXMLError",
    "MemberNotFoundError",
    "ResourceLimitError",
    "XCEError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
