"""
Writers for result tables and cleaning reports.

CSV output follows a fixed dialect (header, comma, necessary quoting, LF) so
repeated runs are byte-identical.
"""
import logging
from pathlib import Path
from typing import Union

import polars as pl

from catalog_pipeline.aggregate.result import ResultTable
from catalog_pipeline.cleaners.report import CleaningReport

logger = logging.getLogger(__name__)


def write_table_csv(table: ResultTable, path: Union[str, Path]) -> Path:
    """
    Write a ResultTable to CSV with its column order; nulls become empty cells.

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = table.to_polars()
    df = df.select([pl.col(column).cast(pl.Utf8).fill_null("") for column in df.columns])
    df.write_csv(
        path,
        include_header=True,
        separator=",",
        quote_style="necessary",
        line_terminator="\n",
    )

    logger.info(f"Wrote {len(table)} rows of '{table.name}' to {path}")
    return path


def write_report_json(report: CleaningReport, path: Union[str, Path], indent: int = 2) -> Path:
    """Write a CleaningReport as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.to_json(indent=indent) + "\n", encoding="utf-8")
    logger.info(f"Wrote cleaning report to {path}")
    return path
