"""
Record models shared by the Cleaner and the Aggregator.

RawRecord is any mapping of column name → optional string. CanonicalRecord is
the immutable row produced by the Cleaner: identity unique, required fields
filled, dates as datetime.date and quantity fields split into
<field>_value / <field>_unit companions.
"""
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import polars as pl

from catalog_pipeline.errors import StructuralError
from catalog_pipeline.transform.normalizers import to_text

RawRecord = Mapping[str, Optional[str]]

QUANTITY_VALUE_SUFFIX = "_value"
QUANTITY_UNIT_SUFFIX = "_unit"


@dataclass(frozen=True)
class Quantity:
    """Parsed numeric-bearing text, e.g. "90 min" → Quantity(90, "minutes", "90 min")."""

    magnitude: int
    unit: str
    text: str


@dataclass(frozen=True)
class CanonicalRecord(MappingABC):
    """
    A validated, fully-imputed output row.

    Behaves as a read-only mapping; values cannot be reassigned after the
    cleaning pass.
    """

    data: Mapping[str, Any]

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __hash__(self) -> int:
        return hash(frozenset(self.data.items()))

    def quantity(self, field: str) -> Quantity:
        """
        Parsed magnitude and unit of a quantity field.

        Raises:
            KeyError: If the field was not parsed as a quantity
        """
        return Quantity(
            magnitude=self.data[field + QUANTITY_VALUE_SUFFIX],
            unit=self.data[field + QUANTITY_UNIT_SUFFIX],
            text=self.data[field],
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)


def records_to_frame(records: Sequence[RawRecord]) -> pl.DataFrame:
    """
    Build an all-text polars DataFrame from raw records.

    Columns appear in first-seen order across all records; missing keys become
    nulls. Non-string values are stringified (dates to ISO text).

    Raises:
        StructuralError: If records is not a sequence of mappings with string keys
    """
    if isinstance(records, (str, bytes)) or isinstance(records, MappingABC):
        raise StructuralError(
            f"Expected a sequence of mappings, got {type(records).__name__}"
        )
    try:
        rows = list(records)
    except TypeError as e:
        raise StructuralError(
            f"Expected a sequence of mappings, got {type(records).__name__}"
        ) from e

    columns: List[str] = []
    seen = set()
    for index, row in enumerate(rows):
        if not isinstance(row, MappingABC):
            raise StructuralError(
                f"Record {index} is {type(row).__name__}, expected a mapping"
            )
        for key in row.keys():
            if not isinstance(key, str):
                raise StructuralError(
                    f"Record {index} has non-string column name {key!r}"
                )
            if key not in seen:
                seen.add(key)
                columns.append(key)

    data = {
        column: [to_text(row.get(column)) for row in rows]
        for column in columns
    }
    return pl.DataFrame(data, schema={column: pl.Utf8 for column in columns})


def frame_to_records(df: pl.DataFrame) -> List[CanonicalRecord]:
    """Freeze every row of a cleaned DataFrame into a CanonicalRecord."""
    return [CanonicalRecord(row) for row in df.iter_rows(named=True)]
