"""
Declarative aggregation specifications.

An AggregationSpec names one operation and its parameters, e.g. the
equivalent of

    SELECT director, COUNT(*) FROM titles
    WHERE listed_in LIKE '%Comedy%' AND director != 'Not Given'
    GROUP BY director ORDER BY COUNT(*) DESC

is

    AggregationSpec(
        name="comedy_directors",
        kind=AggregationKind.GROUP_COUNT,
        group_by=["director"],
        filters=[Predicate("listed_in", "contains", "Comedy"),
                 Predicate("director", "not_sentinel")],
        sort="count_desc",
    )

Group keys may be derived from date fields: "year(date_added) as year_added".
"""
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Collection, Dict, List, Optional

from catalog_pipeline.cleaners.config import DEFAULT_SENTINEL
from catalog_pipeline.errors import ConfigError
from catalog_pipeline.transform.predicates import Predicate, parse_predicates


class AggregationKind(str, Enum):
    """Supported aggregation operations."""

    GROUP_COUNT = "group_count"
    NUMERIC = "numeric"
    EXPLODE = "explode"
    BUCKET = "bucket"
    CROSSTAB = "crosstab"


SORT_MODES = ("count_desc", "key_asc")
NUMERIC_STATS = ("count", "avg", "min", "max")
KEY_FUNCTIONS = ("year", "month")
UNIT_OPS = ("endswith", "contains", "eq")

_KEY_PATTERN = re.compile(
    r"^\s*(?:(?P<fn>\w+)\(\s*(?P<arg>\w+)\s*\)|(?P<plain>\w+))(?:\s+as\s+(?P<alias>\w+))?\s*$"
)


@dataclass(frozen=True)
class GroupKey:
    """Parsed group key: source field, optional date function, output column."""

    source: str
    function: Optional[str]
    output: str

    @classmethod
    def parse(cls, expression: str) -> "GroupKey":
        match = _KEY_PATTERN.match(expression or "")
        if not match:
            raise ConfigError(f"Invalid group key expression: {expression!r}")
        if match.group("plain"):
            source, function = match.group("plain"), None
            default_name = source
        else:
            source, function = match.group("arg"), match.group("fn")
            if function not in KEY_FUNCTIONS:
                raise ConfigError(
                    f"Unknown key function '{function}' (expected one of {', '.join(KEY_FUNCTIONS)})"
                )
            default_name = f"{function}_{source}"
        return cls(source=source, function=function, output=match.group("alias") or default_name)


@dataclass(frozen=True)
class Bucket:
    """
    Labelled numeric range. None bounds are open (-inf / +inf).

    Bucket("Medium", 61, 120) contains 61 and 120; with
    upper_inclusive=False it contains 61 but not 120.
    """

    label: str
    lower: Optional[float] = None
    upper: Optional[float] = None
    lower_inclusive: bool = True
    upper_inclusive: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bucket":
        if not isinstance(data, dict) or "label" not in data:
            raise ConfigError(f"Bucket needs a 'label': {data!r}")
        return cls(
            label=str(data["label"]),
            lower=_bound(data.get("lower")),
            upper=_bound(data.get("upper")),
            lower_inclusive=data.get("lower_inclusive", True),
            upper_inclusive=data.get("upper_inclusive", True),
        )

    def contains(self, value: float) -> bool:
        if self.lower is not None:
            if value < self.lower or (value == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if value > self.upper or (value == self.upper and not self.upper_inclusive):
                return False
        return True

    def validate(self) -> None:
        if self.lower is not None and self.upper is not None:
            if self.lower > self.upper:
                raise ConfigError(f"Bucket '{self.label}': lower {self.lower} > upper {self.upper}")
            if self.lower == self.upper and not (self.lower_inclusive and self.upper_inclusive):
                raise ConfigError(f"Bucket '{self.label}' is empty")


def _bound(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in ("inf", "+inf", "infinity", "-inf"):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid bucket bound: {value!r}") from e
    return None if math.isinf(number) else number


@dataclass
class AggregationSpec:
    """Declarative description of one aggregation operation and its parameters."""

    name: str
    kind: AggregationKind
    group_by: List[str] = field(default_factory=list)
    value_field: Optional[str] = None
    pivot: Optional[str] = None
    pivot_values: List[str] = field(default_factory=list)
    filters: List[Predicate] = field(default_factory=list)
    unit: Optional[Predicate] = None
    stats: List[str] = field(default_factory=lambda: ["avg"])
    label: Optional[str] = None
    delimiter: str = ","
    buckets: List[Bucket] = field(default_factory=list)
    sort: Optional[str] = None
    limit: Optional[int] = None
    count_column: str = "count"
    output: Optional[str] = None
    sentinel: str = DEFAULT_SENTINEL

    @classmethod
    def from_dict(cls, data: Dict[str, Any], sentinel: str = DEFAULT_SENTINEL) -> "AggregationSpec":
        """Parse a spec from YAML dict."""
        if not isinstance(data, dict):
            raise ConfigError(f"Aggregation spec must be a mapping, got {type(data).__name__}")
        try:
            kind = AggregationKind(data.get("kind"))
        except ValueError as e:
            raise ConfigError(f"Aggregation '{data.get('name')}': unknown kind {data.get('kind')!r}") from e

        group_by = data.get("group_by") or []
        if isinstance(group_by, str):
            group_by = [group_by]

        unit = None
        if data.get("unit"):
            unit_data = data["unit"]
            unit = Predicate(
                field=data.get("field") or "",
                op=unit_data.get("op", "endswith"),
                value=str(unit_data.get("value")),
            )

        spec = cls(
            name=data.get("name") or "",
            kind=kind,
            group_by=list(group_by),
            value_field=data.get("field"),
            pivot=data.get("pivot"),
            pivot_values=[str(v) for v in data.get("pivot_values") or []],
            filters=parse_predicates(data.get("filters")),
            unit=unit,
            stats=list(data.get("stats") or ["avg"]),
            label=data.get("label"),
            delimiter=data.get("delimiter", ","),
            buckets=[Bucket.from_dict(item) for item in data.get("buckets") or []],
            sort=data.get("sort"),
            limit=data.get("limit"),
            count_column=data.get("count_column", "count"),
            output=data.get("output"),
            sentinel=data.get("sentinel", sentinel),
        )
        spec.validate()
        return spec

    # ------------------------------------------------------------------ #

    @property
    def keys(self) -> List[GroupKey]:
        return [GroupKey.parse(expression) for expression in self.group_by]

    def validate(self, columns: Optional[Collection[str]] = None) -> None:
        """
        Validate the spec; with `columns`, also check every referenced field exists.

        Raises:
            ConfigError: On structural problems or unknown fields
        """
        if not self.name:
            raise ConfigError("Aggregation spec needs a name")
        where = f"Aggregation '{self.name}'"

        if self.sort is not None and self.sort not in SORT_MODES:
            raise ConfigError(f"{where}: unknown sort '{self.sort}'")
        if self.limit is not None and (not isinstance(self.limit, int) or self.limit < 1):
            raise ConfigError(f"{where}: limit must be a positive integer")
        for predicate in self.filters:
            predicate.validate()

        keys = self.keys
        if self.kind == AggregationKind.GROUP_COUNT:
            if not 1 <= len(keys) <= 2:
                raise ConfigError(f"{where}: group_count needs one or two group_by keys")
        elif self.kind == AggregationKind.CROSSTAB:
            if len(keys) != 1 or not self.pivot:
                raise ConfigError(f"{where}: crosstab needs one group_by key and a pivot field")
            reserved = {keys[0].output, "total"}
            clashing = [value for value in self.pivot_values if value in reserved]
            if clashing:
                raise ConfigError(f"{where}: pivot_values {clashing} collide with output columns")
        else:
            if not self.value_field:
                raise ConfigError(f"{where}: {self.kind.value} needs a field")

        if self.kind == AggregationKind.NUMERIC:
            unknown = [s for s in self.stats if s not in NUMERIC_STATS]
            if unknown or not self.stats:
                raise ConfigError(f"{where}: unknown stats {unknown}")
        if self.unit is not None:
            if self.unit.op not in UNIT_OPS:
                raise ConfigError(f"{where}: unit op must be one of {', '.join(UNIT_OPS)}")
            if self.unit.value in (None, ""):
                raise ConfigError(f"{where}: unit needs a value")
            if not self.value_field:
                raise ConfigError(f"{where}: unit needs a field")
        if self.kind == AggregationKind.BUCKET:
            if not self.buckets:
                raise ConfigError(f"{where}: bucket needs at least one bucket")
            labels = [bucket.label for bucket in self.buckets]
            if len(labels) != len(set(labels)):
                raise ConfigError(f"{where}: bucket labels must be unique")
            for bucket in self.buckets:
                bucket.validate()
        if self.kind == AggregationKind.EXPLODE and not self.delimiter:
            raise ConfigError(f"{where}: explode needs a delimiter")

        if columns is not None:
            missing = sorted(set(self.referenced_fields()) - set(columns))
            if missing:
                raise ConfigError(f"{where}: unknown field(s) {missing}")

    def referenced_fields(self) -> List[str]:
        fields = [key.source for key in self.keys]
        fields += [f for f in (self.value_field, self.pivot, self.label) if f]
        fields += [predicate.field for predicate in self.filters]
        return fields

    def result_columns(self) -> List[str]:
        """Column names of the ResultTable this spec produces."""
        if self.kind == AggregationKind.GROUP_COUNT:
            return [key.output for key in self.keys] + [self.count_column]
        if self.kind == AggregationKind.EXPLODE:
            return [self.output or self.value_field, self.count_column]
        if self.kind == AggregationKind.BUCKET:
            return [self.output or "bucket", self.count_column]
        if self.kind == AggregationKind.CROSSTAB:
            return [self.keys[0].output] + list(self.pivot_values) + ["total"]
        columns: List[str] = []
        for stat in self.stats:
            if stat == "avg":
                columns.append("average")
            else:
                columns.append(stat)
            if stat in ("min", "max") and self.label:
                columns.append(f"{stat}_{self.label}")
        return columns

    def unit_predicate(self) -> Optional[Predicate]:
        """Unit predicate bound to the spec's field."""
        if self.unit is None:
            return None
        return Predicate(field=self.value_field, op=self.unit.op, value=self.unit.value)
