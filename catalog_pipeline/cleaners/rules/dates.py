"""
Date normalization rule.

Converts textual dates ("September 25, 2021") into pl.Date columns, the
equivalent of STR_TO_DATE(date_added, '%M %d, %Y') followed by MODIFY COLUMN
... DATE. Unparseable values become ParseError entries and their rows are
dropped.
"""
import logging
from typing import List

import polars as pl

from catalog_pipeline.errors import ParseError
from catalog_pipeline.transform.normalizers import ISO_DATE_FORMAT, NormalizeError, is_blank, parse_date
from ..base import ChangeType, CleaningResult, CleaningRule
from ..config import ImputationConfig

logger = logging.getLogger(__name__)


class DateNormalizationRule(CleaningRule):
    """Parse configured date fields into calendar dates."""

    def __init__(self, config: ImputationConfig):
        self.config = config

    @property
    def name(self) -> str:
        return "Date Normalization"

    @property
    def priority(self) -> int:
        return 70

    @property
    def formats(self) -> List[str]:
        """Configured formats, plus ISO so canonical output parses again."""
        formats = list(self.config.date_formats)
        if ISO_DATE_FORMAT not in formats:
            formats.append(ISO_DATE_FORMAT)
        return formats

    @property
    def description(self) -> str:
        return f"Parse {self.config.date_fields} with formats {self.formats}"

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        result = CleaningResult(df=df)
        identity = self.config.identity_field
        formats = self.formats

        for column in self.config.date_fields:
            if column not in result.df.columns:
                continue

            ids = result.df[identity].to_list()
            parsed = []
            failed: List[bool] = []
            for record_id, value in zip(ids, result.df[column].to_list()):
                if is_blank(value):
                    parsed.append(None)
                    failed.append(False)
                    continue
                try:
                    parsed.append(parse_date(value, formats))
                    failed.append(False)
                except NormalizeError as e:
                    result.parse_errors.append(ParseError(column, value, str(e), record_id))
                    parsed.append(None)
                    failed.append(True)

            result.df = result.df.with_columns(pl.Series(column, parsed, dtype=pl.Date))
            result.add_change(
                ChangeType.DTYPE_CHANGED,
                f"Converted '{column}' to date",
                {"column": column, "dtype": "date"},
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

        return result
