"""
Whitespace cleaning rule implemented for Polars DataFrames.

Trims leading/trailing whitespace from all text values and turns empty
strings into nulls so every later rule sees a single notion of "blank".
"""
from __future__ import annotations

import logging

import polars as pl

from ..base import ChangeType, CleaningResult, CleaningRule
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class WhitespaceRule(CleaningRule):
    """
    Trim whitespace from string columns and null out blank strings.
    """

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Whitespace Trimming"

    @property
    def priority(self) -> int:
        return 5  # Before deduplication so " s1" and "s1" collide

    @property
    def description(self) -> str:
        return "Trim leading/trailing whitespace and treat empty strings as blank"

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        """
        Trim whitespace from all string columns.

        Args:
            df: Input Polars DataFrame

        Returns:
            CleaningResult with trimmed values
        """
        result = CleaningResult(df=df.clone())

        columns_cleaned = 0
        values_cleaned = 0
        values_blanked = 0

        for column_name in result.df.columns:
            column = result.df[column_name]

            if column.dtype not in (pl.Utf8, pl.String):
                continue

            non_null_mask = column.is_not_null()
            if not bool(non_null_mask.any()):
                continue

            trimmed = column.str.strip_chars()
            empty_mask = non_null_mask & (trimmed.str.len_chars() == 0)
            blanked = int(empty_mask.sum())

            # Identify actual changes (ignoring nulls and values that become null)
            changed_mask = non_null_mask & ~empty_mask & (column != trimmed)
            changed = int(changed_mask.sum())
            if changed == 0 and blanked == 0:
                continue

            stripped = pl.col(column_name).str.strip_chars()
            result.df = result.df.with_columns(
                pl.when(stripped.str.len_chars() == 0)
                .then(pl.lit(None, dtype=pl.Utf8))
                .otherwise(stripped)
                .alias(column_name)
            )

            if changed:
                columns_cleaned += 1
                values_cleaned += changed
                result.add_change(
                    ChangeType.VALUE_MODIFIED,
                    f"Trimmed whitespace in column '{column_name}'",
                    {"column": column_name, "values_modified": changed},
                )
            values_blanked += blanked
            logger.debug(
                "Column '%s': %s values trimmed, %s blank strings nulled",
                column_name,
                changed,
                blanked,
            )

        result.stats["columns_cleaned"] = columns_cleaned
        result.stats["values_trimmed"] = values_cleaned
        result.stats["blank_strings_nulled"] = values_blanked

        if values_cleaned > 0:
            logger.info(
                "Trimmed whitespace from %s values across %s columns",
                values_cleaned,
                columns_cleaned,
            )
        else:
            logger.info("No whitespace issues detected")

        return result
