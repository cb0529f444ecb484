"""
Row-level discard for required fields.

Rows still blank in any required field after imputation cannot be repaired
(date_added, rating and duration in the catalog export) and are deleted.
"""
import logging

import polars as pl

from ..base import ChangeType, CleaningResult, CleaningRule, blank_mask
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class CompletenessRule(CleaningRule):
    """Drop rows blank in any required field."""

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Required Fields"

    @property
    def priority(self) -> int:
        return 40

    @property
    def description(self) -> str:
        return f"Drop rows blank in any of {self.config.required_fields}"

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        result = CleaningResult(df=df)
        if not self.config.required_fields or df.height == 0:
            result.stats["dropped_incomplete"] = 0
            return result

        incomplete = pl.Series([False] * df.height)
        per_field = {}
        for column in self.config.required_fields:
            if column not in df.columns:
                result.add_warning(f"Required field '{column}' is missing; every row is incomplete")
                mask = pl.Series([True] * df.height)
            else:
                mask = blank_mask(df, column)
            per_field[column] = int(mask.sum())
            incomplete = incomplete | mask

        dropped = int(incomplete.sum())
        if dropped:
            result.df = df.filter(~incomplete)
            result.add_change(
                ChangeType.ROW_DROPPED,
                f"Dropped {dropped} rows blank in required fields",
                {"rows": dropped, "blank_by_field": per_field},
            )
            logger.info("Dropped %s incomplete rows: %s", dropped, per_field)

        result.stats["dropped_incomplete"] = dropped
        result.stats["blank_by_field"] = per_field
        return result
