"""
Data cleaning module for catalog exports.

Turns raw records into canonical records: deduplication, rule-chain
imputation, completeness checks, projection and type coercion.
"""
from .data_cleaner import DataCleaner, clean
from .config import ImputationConfig, FieldImputation, ImputationRule
from .report import CleaningReport
from .base import CleaningRule, CleaningResult, CleaningRuleError, Change, ChangeType

__all__ = [
    "DataCleaner",
    "clean",
    "ImputationConfig",
    "FieldImputation",
    "ImputationRule",
    "CleaningReport",
    "CleaningRule",
    "CleaningResult",
    "CleaningRuleError",
    "Change",
    "ChangeType",
]
