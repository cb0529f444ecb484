"""
ResultTable: ordered sequence of named rows returned by every aggregation.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import polars as pl


@dataclass(frozen=True)
class ResultTable:
    """Named, ordered result set. Rows are tuples aligned with `columns`."""

    name: str
    columns: Tuple[str, ...]
    rows: Tuple[Tuple[Any, ...], ...] = field(default_factory=tuple)

    @classmethod
    def from_frame(cls, name: str, df: pl.DataFrame) -> "ResultTable":
        return cls(name=name, columns=tuple(df.columns), rows=tuple(df.iter_rows()))

    @classmethod
    def empty(cls, name: str, columns: List[str]) -> "ResultTable":
        return cls(name=name, columns=tuple(columns), rows=())

    def __len__(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> List[Any]:
        """All values of one column, in row order."""
        index = self.columns.index(name)
        return [row[index] for row in self.rows]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def to_polars(self) -> pl.DataFrame:
        if not self.rows:
            return pl.DataFrame(schema={column: pl.Null for column in self.columns})
        return pl.DataFrame(self.to_dicts(), infer_schema_length=None)
