"""
Quantity parsing for numeric-bearing text fields.

"90 min" → duration_value=90, duration_unit="minutes"; "3 Seasons" →
duration_value=3, duration_unit="seasons". The original text is kept.
"""
import logging

import polars as pl

from catalog_pipeline.errors import ParseError
from catalog_pipeline.models.record import QUANTITY_UNIT_SUFFIX, QUANTITY_VALUE_SUFFIX
from catalog_pipeline.transform.normalizers import NormalizeError, is_blank, parse_quantity
from ..base import ChangeType, CleaningResult, CleaningRule
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class QuantityRule(CleaningRule):
    """Expose magnitude and unit of quantity fields as companion columns."""

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Quantity Parsing"

    @property
    def priority(self) -> int:
        return 80

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        result = CleaningResult(df=df)
        identity = self.config.identity_field
        parsed_total = 0

        for column, units in self.config.quantity_fields.items():
            if column not in result.df.columns:
                continue

            magnitudes, unit_names, failed = [], [], []
            ids = result.df[identity].to_list()
            for record_id, value in zip(ids, result.df[column].to_list()):
                if is_blank(value):
                    magnitudes.append(None)
                    unit_names.append(None)
                    failed.append(False)
                    continue
                try:
                    magnitude, unit = parse_quantity(value, units)
                except NormalizeError as e:
                    result.parse_errors.append(ParseError(column, value, str(e), record_id))
                    magnitudes.append(None)
                    unit_names.append(None)
                    failed.append(True)
                    continue
                magnitudes.append(magnitude)
                unit_names.append(unit)
                failed.append(False)

            result.df = result.df.with_columns(
                pl.Series(column + QUANTITY_VALUE_SUFFIX, magnitudes, dtype=pl.Int64),
                pl.Series(column + QUANTITY_UNIT_SUFFIX, unit_names, dtype=pl.Utf8),
            )

            failures = sum(failed)
            if failures:
                result.df = result.df.filter(~pl.Series(failed, dtype=pl.Boolean))
                result.add_change(
                    ChangeType.ROW_DROPPED,
                    f"Dropped {failures} rows with unparseable '{column}'",
                    {"column": column, "rows": failures},
                )
                logger.warning("%s unparseable '%s' values dropped", failures, column)

            parsed = len(failed) - failures
            parsed_total += parsed
            logger.debug("Parsed %s '%s' quantities", parsed, column)

        result.stats["quantities_parsed"] = parsed_total
        return result
