"""Writers serializing extracted cell records to CSV, JSON and Parquet.

The output format is chosen from the target file's extension. All writers
accept the same flat record list produced by the extraction orchestrator.
"""

import json
import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd
import pyarrow as pa

from xlsx_cell_extractor.config import Settings
from xlsx_cell_extractor.config import settings as default_settings
from xlsx_cell_extractor.models import ExtractedRecord
from xlsx_cell_extractor.utils.exceptions import (
    OutputWriteError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "sheet_name",
    "row_number",
    "column_number",
    "sheet_value",
    "merged",
    "merged_range",
]
"""Column order shared by every output format."""

CSV_HEADER = [
    "SheetName",
    "RowNumber",
    "ColumnNumber",
    "SheetValue",
    "Merged",
    "MergedRange",
]
"""Header row written by the CSV writer."""


class OutputFormat(str, Enum):
    """Supported serialization formats, keyed by file extension."""

    CSV = "csv"
    JSON = "json"
    PARQUET = "parquet"


def detect_format(target_path: Path | str) -> OutputFormat:
    """Determine the output format from the target file's extension.

    Args:
        target_path: Destination file path.

    Returns:
        The matching OutputFormat.

    Raises:
        UnsupportedFormatError: If the extension is missing or unknown.
    """
    extension = Path(target_path).suffix.lstrip(".").lower()
    try:
        return OutputFormat(extension)
    except ValueError:
        raise UnsupportedFormatError(str(target_path), extension) from None


def records_to_dataframe(records: Sequence[ExtractedRecord]) -> pd.DataFrame:
    """Build a DataFrame with one row per record and fixed column dtypes.

    Args:
        records: Extracted cell records.

    Returns:
        DataFrame with columns in RECORD_COLUMNS order.
    """
    df = pd.DataFrame(
        [record.to_dict() for record in records], columns=RECORD_COLUMNS
    )
    return df.astype(
        {
            "sheet_name": "string",
            "row_number": "int32",
            "column_number": "int32",
            "sheet_value": "string",
            "merged": "bool",
            "merged_range": "string",
        }
    )


def write_csv(records: Sequence[ExtractedRecord], target_path: Path | str) -> None:
    """Write records as CSV with a header row and lowercase booleans."""
    df = records_to_dataframe(records)
    df["merged"] = df["merged"].map({True: "true", False: "false"})
    df.to_csv(target_path, index=False, header=CSV_HEADER)


def _json_record(record: ExtractedRecord) -> dict[str, Any]:
    data: dict[str, Any] = {
        "sheet_name": record.sheet_name,
        "row_number": record.row_number,
        "column_number": record.column_number,
        "sheet_value": record.sheet_value,
    }
    # merge fields are only written when set
    if record.merged:
        data["merged"] = True
    if record.merged_range:
        data["merged_range"] = record.merged_range
    return data


def write_json(records: Sequence[ExtractedRecord], target_path: Path | str) -> None:
    """Write records as a JSON array of objects."""
    with open(target_path, "w", encoding="utf-8") as f:
        json.dump([_json_record(record) for record in records], f, ensure_ascii=False)
        f.write("\n")


def write_parquet(
    records: Sequence[ExtractedRecord],
    target_path: Path | str,
    compression: str | None = "zstd",
) -> None:
    """Write records as a Parquet file.

    Args:
        records: Extracted cell records.
        target_path: Destination file path.
        compression: Parquet codec name, or None for uncompressed output.
    """
    df = records_to_dataframe(records)
    df.to_parquet(target_path, engine="pyarrow", compression=compression, index=False)


def write_records(
    records: Sequence[ExtractedRecord],
    target_path: Path | str,
    settings: Settings | None = None,
) -> OutputFormat:
    """Write records in the format implied by ``target_path``'s extension.

    Args:
        records: Extracted cell records.
        target_path: Destination file path (.csv, .json or .parquet).
        settings: Settings supplying the parquet codec.

    Returns:
        The format that was written.

    Raises:
        UnsupportedFormatError: If the extension is not supported.
        OutputWriteError: If the file cannot be written or pyarrow rejects
            the frame.
    """
    cfg = settings or default_settings
    output_format = detect_format(target_path)
    try:
        if output_format is OutputFormat.CSV:
            write_csv(records, target_path)
        elif output_format is OutputFormat.JSON:
            write_json(records, target_path)
        else:
            write_parquet(records, target_path, compression=cfg.parquet_codec)
    except (OSError, pa.ArrowException) as e:
        raise OutputWriteError(str(target_path), str(e)) from e

    logger.info(
        f"{output_format.value.upper()} output written to {target_path} "
        f"({len(records)} records)"
    )
    return output_format
