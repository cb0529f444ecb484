"""
Primary-value extraction for multi-valued text fields.

Replaces SUBSTRING_INDEX(country, ',', 1): only the first token is kept as
the canonical scalar. Rows left without a primary value are dropped.
With retain_suffix set, the full text is kept in <field><suffix> the first
time the field is split.
"""
import logging

import polars as pl

from catalog_pipeline.transform.normalizers import primary_token
from ..base import ChangeType, CleaningResult, CleaningRule
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class PrimaryValueRule(CleaningRule):
    """Reduce delimited fields to their first token."""

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Primary Value Extraction"

    @property
    def priority(self) -> int:
        return 60

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        result = CleaningResult(df=df)
        delimiter = self.config.delimiter
        split_total = 0
        dropped_total = 0

        for column in self.config.primary_value_fields:
            if column not in result.df.columns:
                continue

            original = result.df[column].to_list()
            primary = [primary_token(value, delimiter) for value in original]
            split = sum(
                1 for before, after in zip(original, primary)
                if after is not None and before != after
            )

            suffix = self.config.retain_suffix
            if suffix and column + suffix not in result.df.columns:
                result.df = result.df.with_columns(pl.col(column).alias(column + suffix))
                result.add_change(
                    ChangeType.COLUMN_ADDED,
                    f"Retained full '{column}' text as '{column + suffix}'",
                    {"column": column + suffix},
                )

            result.df = result.df.with_columns(pl.Series(column, primary, dtype=pl.Utf8))

            # blank before the split stays blank; only a lost primary token drops the row
            empty = pl.Series(
                [before is not None and after is None for before, after in zip(original, primary)],
                dtype=pl.Boolean,
            )
            dropped = int(empty.sum())
            if dropped:
                result.df = result.df.filter(~empty)
                result.add_change(
                    ChangeType.ROW_DROPPED,
                    f"Dropped {dropped} rows without a primary '{column}'",
                    {"column": column, "rows": dropped},
                )

            if split:
                result.add_change(
                    ChangeType.VALUE_MODIFIED,
                    f"Kept first '{delimiter}'-separated token in {split} '{column}' values",
                    {"column": column, "values_modified": split},
                )
            logger.info("Column '%s': %s values reduced to primary token", column, split)
            split_total += split
            dropped_total += dropped

        result.stats["values_split"] = split_total
        result.stats["dropped_incomplete"] = dropped_total
        return result
