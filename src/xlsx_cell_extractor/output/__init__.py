"""Output generation module for extracted cell records.

This module provides writers serializing the flat record list to CSV, JSON
and Parquet, with the format chosen by target file extension.
"""

from xlsx_cell_extractor.output.writers import (
    OutputFormat,
    detect_format,
    records_to_dataframe,
    write_csv,
    write_json,
    write_parquet,
    write_records,
)

__all__ = [
    "OutputFormat",
    "detect_format",
    "records_to_dataframe",
    "write_csv",
    "write_json",
    "write_parquet",
    "write_records",
]
