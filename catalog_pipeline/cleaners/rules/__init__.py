"""Cleaning rules, registered by DataCleaner in priority order."""
from .whitespace import WhitespaceRule
from .deduplicate import DeduplicateRule
from .imputation import FieldImputationRule
from .completeness import CompletenessRule
from .projection import ProjectionRule
from .primary_value import PrimaryValueRule
from .dates import DateNormalizationRule
from .quantities import QuantityRule

__all__ = [
    "WhitespaceRule",
    "DeduplicateRule",
    "FieldImputationRule",
    "CompletenessRule",
    "ProjectionRule",
    "PrimaryValueRule",
    "DateNormalizationRule",
    "QuantityRule",
]
