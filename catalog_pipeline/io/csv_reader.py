"""
CSV reader producing raw records.

Every column is read as text; empty cells arrive as None. No cleaning happens
here, that is the Cleaner's job.
"""
import logging
from pathlib import Path
from typing import List, Union

import polars as pl

from catalog_pipeline.errors import StructuralError
from catalog_pipeline.models.record import RawRecord

logger = logging.getLogger(__name__)


def read_records(path: Union[str, Path], separator: str = ",") -> List[RawRecord]:
    """
    Read a CSV export into raw records.

    Args:
        path: CSV file path
        separator: Field separator

    Returns:
        One dict per row, column name → optional string

    Raises:
        StructuralError: If the file cannot be parsed as CSV
    """
    try:
        df = pl.read_csv(
            path,
            separator=separator,
            infer_schema=False,
            encoding="utf8-lossy",
        )
    except pl.exceptions.PolarsError as e:
        raise StructuralError(f"Cannot read CSV {path}: {e}") from e

    logger.info(f"Read {df.height} rows x {df.width} columns from {path}")
    return df.to_dicts()
