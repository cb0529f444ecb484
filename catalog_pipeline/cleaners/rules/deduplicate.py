"""
Identity deduplication rule.

Equivalent of GROUP BY show_id HAVING COUNT(*) > 1 followed by keeping one
row per id: the first-seen row wins, later rows with the same id are dropped.
Rows whose identity is blank cannot be canonical and are dropped as incomplete.
"""
import logging

import polars as pl

from catalog_pipeline.errors import StructuralError
from ..base import ChangeType, CleaningResult, CleaningRule, blank_mask
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class DeduplicateRule(CleaningRule):
    """Keep the first record per identity value."""

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Identity Deduplication"

    @property
    def priority(self) -> int:
        return 10

    @property
    def description(self) -> str:
        return f"Drop repeated '{self.config.identity_field}' values, keeping the first"

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        identity = self.config.identity_field
        if identity not in df.columns:
            raise StructuralError(f"Identity field '{identity}' is missing from every record")

        result = CleaningResult(df=df)

        missing = blank_mask(df, identity)
        missing_count = int(missing.sum())
        if missing_count:
            result.df = result.df.filter(~missing)
            result.add_change(
                ChangeType.ROW_DROPPED,
                f"Dropped {missing_count} rows with blank '{identity}'",
                {"column": identity, "rows": missing_count},
            )

        before = result.df.height
        result.df = result.df.unique(subset=[identity], keep="first", maintain_order=True)
        removed = before - result.df.height

        if removed:
            result.add_change(
                ChangeType.ROW_DROPPED,
                f"Removed {removed} duplicate '{identity}' rows",
                {"column": identity, "rows": removed},
            )
            logger.info("Removed %s duplicate rows by '%s'", removed, identity)
        else:
            logger.info("No duplicate '%s' values found", identity)

        result.stats["duplicates_removed"] = removed
        result.stats["dropped_incomplete"] = missing_count
        return result
