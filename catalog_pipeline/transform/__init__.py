"""
Value parsers and row predicates.
"""
from catalog_pipeline.transform.normalizers import (
    NormalizeError,
    is_blank,
    parse_date,
    parse_quantity,
    primary_token,
    split_tokens,
)
from catalog_pipeline.transform.predicates import Predicate, combine

__all__ = [
    "NormalizeError",
    "is_blank",
    "parse_date",
    "parse_quantity",
    "primary_token",
    "split_tokens",
    "Predicate",
    "combine",
]
