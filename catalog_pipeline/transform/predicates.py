"""
Row predicates shared by conditional imputation and aggregation filters.

A predicate compiles to a polars expression. Comparisons are made on the text
form of the column, so date columns can be matched by their ISO value.
Null cells never match (SQL semantics).
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import polars as pl

from catalog_pipeline.errors import ConfigError

PREDICATE_OPS = ("eq", "ne", "contains", "startswith", "endswith", "not_sentinel", "not_blank")


@dataclass(frozen=True)
class Predicate:
    """Single-field row test, e.g. Predicate("listed_in", "contains", "Comedy")."""

    field: str
    op: str
    value: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Predicate":
        """Parse from {"field": ..., "op": ..., "value": ...}."""
        try:
            field = data["field"]
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Predicate needs a 'field': {data!r}") from e
        value = data.get("value")
        return cls(
            field=field,
            op=data.get("op", "eq"),
            value=None if value is None else str(value),
        )

    def validate(self) -> None:
        if self.op not in PREDICATE_OPS:
            raise ConfigError(
                f"Predicate on '{self.field}': unknown op '{self.op}' "
                f"(expected one of {', '.join(PREDICATE_OPS)})"
            )
        if self.op not in ("not_sentinel", "not_blank") and self.value is None:
            raise ConfigError(f"Predicate on '{self.field}': op '{self.op}' needs a value")

    def to_expr(self, sentinel: str) -> pl.Expr:
        """Compile to a boolean polars expression."""
        column = pl.col(self.field).cast(pl.Utf8)

        if self.op == "eq":
            expr = column == self.value
        elif self.op == "ne":
            expr = column != self.value
        elif self.op == "contains":
            expr = column.str.contains(self.value, literal=True)
        elif self.op == "startswith":
            expr = column.str.starts_with(self.value)
        elif self.op == "endswith":
            expr = column.str.ends_with(self.value)
        elif self.op == "not_sentinel":
            expr = column != sentinel
        else:
            expr = column.str.strip_chars().str.len_chars() > 0

        # null → False so filters drop rows with missing values
        return expr.fill_null(False)


def parse_predicates(items: Optional[Iterable[Dict[str, Any]]]) -> List[Predicate]:
    return [Predicate.from_dict(item) for item in (items or [])]


def combine(predicates: Iterable[Predicate], sentinel: str) -> Optional[pl.Expr]:
    """AND all predicates together; None when there are none."""
    expr = None
    for predicate in predicates:
        compiled = predicate.to_expr(sentinel)
        expr = compiled if expr is None else expr & compiled
    return expr
