"""
Aggregator entry points.

aggregate() runs one spec; run_reports() runs many independent specs over the
same read-only frame on a thread pool. Specs are validated against the record
columns before any row is processed; row content never raises.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional, Sequence

import polars as pl

from catalog_pipeline.errors import ConfigError, StructuralError
from .operations import OPERATIONS
from .result import ResultTable
from .spec import AggregationSpec

logger = logging.getLogger(__name__)


def build_frame(records: Sequence[Mapping[str, Any]]) -> pl.DataFrame:
    """
    Build a polars frame from canonical records (or any mappings).

    Raises:
        StructuralError: If records are not mappings or columns mix types
    """
    rows = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise StructuralError(f"Record {index} is {type(record).__name__}, expected a mapping")
        rows.append(dict(record))

    if not rows:
        return pl.DataFrame()
    try:
        return pl.DataFrame(rows, infer_schema_length=None)
    except (TypeError, pl.exceptions.PolarsError) as e:
        raise StructuralError(f"Records cannot form a table: {e}") from e


def aggregate_frame(df: pl.DataFrame, spec: AggregationSpec) -> ResultTable:
    """Run one spec over a prepared frame."""
    spec.validate()
    if df.height == 0 and df.width == 0:
        return ResultTable.empty(spec.name, spec.result_columns())

    spec.validate(df.columns)
    result = OPERATIONS[spec.kind](df, spec)
    logger.debug("Aggregation '%s' (%s): %s rows", spec.name, spec.kind.value, result.height)
    return ResultTable.from_frame(spec.name, result)


def aggregate(records: Sequence[Mapping[str, Any]], spec: AggregationSpec) -> ResultTable:
    """
    Compute one aggregation over canonical records.

    Raises:
        ConfigError: If the spec is invalid or references unknown fields
    """
    spec.validate()
    return aggregate_frame(build_frame(records), spec)


def run_reports(
    records: Sequence[Mapping[str, Any]],
    specs: List[AggregationSpec],
    max_workers: Optional[int] = None,
) -> Dict[str, ResultTable]:
    """
    Run independent aggregations concurrently.

    Args:
        records: Canonical records (shared, read-only)
        specs: Aggregation specs; names must be unique
        max_workers: Thread pool size (None lets the executor decide, 1 runs inline)

    Returns:
        {spec name: ResultTable} in spec order

    Raises:
        ConfigError: Before any aggregation runs, if any spec is invalid
    """
    names = [spec.name for spec in specs]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate aggregation names: {duplicates}")

    df = build_frame(records)
    for spec in specs:
        spec.validate(df.columns if df.width else None)

    logger.info("Running %s aggregations over %s records", len(specs), df.height)

    if max_workers == 1:
        tables = [aggregate_frame(df, spec) for spec in specs]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            tables = list(executor.map(lambda spec: aggregate_frame(df, spec), specs))

    return {table.name: table for table in tables}
