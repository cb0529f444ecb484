"""
Field projection: drop columns that are not part of the canonical shape.
"""
import logging

import polars as pl

from ..base import ChangeType, CleaningResult, CleaningRule
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class ProjectionRule(CleaningRule):
    """Remove unused columns (free-text description, verbose cast list)."""

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Column Projection"

    @property
    def priority(self) -> int:
        return 50

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        result = CleaningResult(df=df)
        present = [column for column in self.config.drop_fields if column in df.columns]

        if present:
            result.df = df.drop(present)
            for column in present:
                result.add_change(
                    ChangeType.COLUMN_DROPPED,
                    f"Dropped unused column '{column}'",
                    {"column": column},
                )
            logger.info("Dropped columns: %s", present)

        result.stats["columns_dropped"] = present
        return result
