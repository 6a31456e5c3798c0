"""Centralized exception classes for xlsx cell extraction.

This module provides a hierarchy of custom exceptions with error codes and
structured error details for consistent error handling throughout the
extraction pipeline.

Exception Hierarchy:
    XCEError (base)
    ├── ContainerError
    │   ├── ContainerNotFoundError
    │   ├── InvalidContainerError
    │   └── MemberNotFoundError
    ├── ContentError
    │   ├── MalformedXMLError
    │   └── InvalidReferenceError
    ├── ExtractionError
    │   ├── SheetNotFoundError
    │   └── ExtractionStageError
    ├── ResourceLimitError
    └── OutputError
        ├── UnsupportedFormatError
        └── OutputWriteError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and in failure reports.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Container/archive errors
    - E2xxx: XML content errors
    - E3xxx: Cell reference errors
    - E4xxx: Extraction errors
    - E5xxx: Resource limit errors
    - E6xxx: Output errors
    - E9xxx: Internal/unexpected errors
    """

    # Container errors (E1xxx)
    CONTAINER_NOT_FOUND = "E1001"
    INVALID_CONTAINER = "E1002"
    MEMBER_NOT_FOUND = "E1003"
    CONTAINER_READ_ERROR = "E1004"

    # Content errors (E2xxx)
    MALFORMED_XML = "E2001"

    # Reference errors (E3xxx)
    INVALID_REFERENCE = "E3001"
    INVALID_RANGE = "E3002"

    # Extraction errors (E4xxx)
    EXTRACTION_FAILED = "E4001"
    SHEET_NOT_FOUND = "E4002"

    # Resource limit errors (E5xxx)
    RESOURCE_LIMIT_EXCEEDED = "E5001"

    # Output errors (E6xxx)
    UNSUPPORTED_FORMAT = "E6001"
    OUTPUT_WRITE_ERROR = "E6002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    UNEXPECTED_ERROR = "E9999"


class XCEError(Exception):
    """Base exception for all xlsx cell extraction errors.

    All custom exceptions in the application should inherit from this class.
    It provides:
    - Unique error codes for programmatic handling
    - Structured error details for logging and failure reports

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for failure reports.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Container Errors (E1xxx)
# =============================================================================


class ContainerError(XCEError):
    """Base class for errors opening or reading the archive."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONTAINER_READ_ERROR,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file path information.

        Args:
            message: Error message.
            error_code: Error code.
            file_path: Path to the problematic archive.
            details: Additional details.
        """
        details = details or {}
        if file_path:
            details["file_path"] = file_path
        super().__init__(message, error_code, details)
        self.file_path = file_path


class ContainerNotFoundError(ContainerError):
    """Raised when the workbook file does not exist."""

    def __init__(self, file_path: str, message: str | None = None) -> None:
        message = message or f"Workbook file not found: {file_path}"
        super().__init__(
            message=message,
            error_code=ErrorCode.CONTAINER_NOT_FOUND,
            file_path=file_path,
        )


class InvalidContainerError(ContainerError):
    """Raised when the file exists but is not a readable ZIP archive."""

    def __init__(self, file_path: str, message: str | None = None) -> None:
        message = message or f"Not a valid XLSX container: {file_path}"
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_CONTAINER,
            file_path=file_path,
        )


class MemberNotFoundError(ContainerError):
    """Raised when a named member is missing from the archive."""

    def __init__(
        self,
        member_name: str,
        file_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing member name.

        Args:
            member_name: Archive member that was requested.
            file_path: Optional archive path.
            details: Additional details.
        """
        details = details or {}
        details["member_name"] = member_name
        super().__init__(
            message=f"Member not found in archive: {member_name}",
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            file_path=file_path,
            details=details,
        )
        self.member_name = member_name


# =============================================================================
# Content Errors (E2xxx / E3xxx)
# =============================================================================


class ContentError(XCEError):
    """Base class for malformed workbook content."""


class MalformedXMLError(ContentError):
    """Raised when a member's XML is invalid or truncated."""

    def __init__(
        self,
        message: str,
        member_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with member information.

        Args:
            message: Error message (usually the parser's description).
            member_name: Archive member being parsed, when known.
            details: Additional details.
        """
        details = details or {}
        if member_name:
            details["member_name"] = member_name
        super().__init__(message, ErrorCode.MALFORMED_XML, details)
        self.member_name = member_name


class InvalidReferenceError(ContentError, ValueError):
    """Raised when a cell reference or range cannot be decoded or encoded."""

    def __init__(
        self,
        reference: str,
        reason: str,
        error_code: ErrorCode = ErrorCode.INVALID_REFERENCE,
    ) -> None:
        """Initialize with the offending reference.

        Args:
            reference: The reference text (or coordinate repr) that failed.
            reason: Short description of what is wrong with it.
            error_code: INVALID_REFERENCE or INVALID_RANGE.
        """
        super().__init__(
            f"Invalid cell reference {reference!r}: {reason}",
            error_code,
            {"reference": reference, "reason": reason},
        )
        self.reference = reference
        self.reason = reason


# =============================================================================
# Extraction Errors (E4xxx)
# =============================================================================


class ExtractionError(XCEError):
    """Base class for extraction failures."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTRACTION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class SheetNotFoundError(ExtractionError):
    """Raised when a requested sheet name is not in the workbook catalog."""

    def __init__(self, sheet_name: str, available: list[str]) -> None:
        super().__init__(
            f"Sheet '{sheet_name}' not found in workbook",
            ErrorCode.SHEET_NOT_FOUND,
            {"sheet_name": sheet_name, "available_sheets": available},
        )
        self.sheet_name = sheet_name


class ExtractionStageError(ExtractionError):
    """Raised when a run-level stage fails and nothing can be extracted.

    The ``stage`` attribute names the failing step (``open_container``,
    ``load_catalog`` or ``load_shared_strings``) and ``cause`` holds the
    underlying error.
    """

    def __init__(self, stage: str, cause: XCEError) -> None:
        details = {"stage": stage, "cause": cause.to_dict()}
        super().__init__(
            f"Extraction failed at stage '{stage}': {cause.message}",
            cause.error_code,
            details,
        )
        self.stage = stage
        self.cause = cause


# =============================================================================
# Resource Limit Errors (E5xxx)
# =============================================================================


class ResourceLimitError(XCEError):
    """Raised when a configured hard cap on memory-bound structures is hit."""

    def __init__(
        self,
        resource: str,
        size: int,
        limit: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            resource: What overflowed (e.g. "shared_strings", "merged_area").
            size: Observed size.
            limit: Configured limit.
            details: Additional details.
        """
        details = details or {}
        details.update({"resource": resource, "size": size, "limit": limit})
        super().__init__(
            f"{resource} size ({size}) exceeds configured limit ({limit})",
            ErrorCode.RESOURCE_LIMIT_EXCEEDED,
            details,
        )
        self.resource = resource
        self.size = size
        self.limit = limit


# =============================================================================
# Output Errors (E6xxx)
# =============================================================================


class OutputError(XCEError):
    """Base class for output serialization errors."""


class UnsupportedFormatError(OutputError):
    """Raised when the target file extension maps to no known writer."""

    def __init__(self, target_path: str, extension: str) -> None:
        super().__init__(
            f"Unknown output format '{extension}'. Use 'csv', 'json', or 'parquet'.",
            ErrorCode.UNSUPPORTED_FORMAT,
            {"target_path": target_path, "extension": extension},
        )
        self.extension = extension


class OutputWriteError(OutputError):
    """Raised when writing the output file fails."""

    def __init__(self, target_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to write {target_path}: {reason}",
            ErrorCode.OUTPUT_WRITE_ERROR,
            {"target_path": target_path},
        )
        self.target_path = target_path
