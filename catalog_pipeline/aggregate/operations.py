"""
Aggregation operations over a polars frame of canonical records.

One function per AggregationKind. Every function is pure: it reads the frame,
applies the spec's filters and returns a new result frame. Rows that fail a
filter or unit predicate, or whose value cannot be parsed, are excluded.
"""
from typing import Callable, Dict, List, Optional

import polars as pl

from catalog_pipeline.transform.predicates import combine
from .spec import AggregationKind, AggregationSpec, GroupKey

NUMBER_PATTERN = r"^\s*(\d+(?:\.\d+)?)"

_VALUE = "__value"
_LABEL = "__label"
_PIVOT = "__pivot"


def _filtered(df: pl.DataFrame, spec: AggregationSpec) -> pl.DataFrame:
    predicates = list(spec.filters)
    unit = spec.unit_predicate()
    if unit is not None:
        predicates.append(unit)
    expr = combine(predicates, spec.sentinel)
    return df if expr is None else df.filter(expr)


def _key_expr(df: pl.DataFrame, key: GroupKey) -> pl.Expr:
    column = pl.col(key.source)
    if key.function is None:
        return column.alias(key.output)

    dtype = df.schema[key.source]
    if dtype == pl.Date or isinstance(dtype, pl.Datetime):
        as_date = column
    else:
        as_date = column.cast(pl.Utf8).str.to_date("%Y-%m-%d", strict=False)

    if key.function == "year":
        return as_date.dt.year().alias(key.output)
    return as_date.dt.month().alias(key.output)


def _numeric_expr(df: pl.DataFrame, column: str) -> pl.Expr:
    """Leading numeric token of a text column, or the column itself when numeric."""
    if df.schema[column].is_numeric():
        return pl.col(column).cast(pl.Float64)
    return pl.col(column).cast(pl.Utf8).str.extract(NUMBER_PATTERN, 1).cast(pl.Float64)


def _count() -> pl.Expr:
    return pl.len().cast(pl.Int64)


def _sort_and_limit(
    df: pl.DataFrame,
    spec: AggregationSpec,
    key_columns: List[str],
    count_column: str,
) -> pl.DataFrame:
    # maintain_order keeps first-seen key order among ties
    if spec.sort == "count_desc":
        df = df.sort(count_column, descending=True, maintain_order=True)
    elif spec.sort == "key_asc":
        df = df.sort(key_columns, nulls_last=True, maintain_order=True)
    if spec.limit:
        df = df.head(spec.limit)
    return df


# ---------------------------------------------------------------------- #


def group_count(df: pl.DataFrame, spec: AggregationSpec) -> pl.DataFrame:
    """Count rows per group of one or two keys."""
    keys = spec.keys
    rows = _filtered(df, spec)
    counted = rows.group_by(
        [_key_expr(rows, key) for key in keys], maintain_order=True
    ).agg(_count().alias(spec.count_column))
    return _sort_and_limit(counted, spec, [key.output for key in keys], spec.count_column)


def numeric(df: pl.DataFrame, spec: AggregationSpec) -> pl.DataFrame:
    """
    Average (plus optional count/min/max) of a leading numeric token.

    Only rows matching the unit predicate contribute, e.g. duration ending in
    "min" for movie runtimes or containing "Season" for shows.
    """
    rows = _filtered(df, spec)
    selected = [_numeric_expr(rows, spec.value_field).alias(_VALUE)]
    if spec.label:
        selected.append(pl.col(spec.label).alias(_LABEL))
    values = rows.select(selected).filter(pl.col(_VALUE).is_not_null())
    series = values[_VALUE]

    data: Dict[str, list] = {}
    for stat in spec.stats:
        if stat == "count":
            data["count"] = [values.height]
        elif stat == "avg":
            data["average"] = [series.mean() if values.height else None]
        else:
            index: Optional[int] = None
            if values.height:
                index = series.arg_min() if stat == "min" else series.arg_max()
            data[stat] = [series[index] if index is not None else None]
            if spec.label:
                data[f"{stat}_{spec.label}"] = [values[_LABEL][index] if index is not None else None]

    return pl.DataFrame(data)


def explode(df: pl.DataFrame, spec: AggregationSpec) -> pl.DataFrame:
    """
    Split a delimited field and count every trimmed token.

    A row listing three categories contributes to three groups.
    """
    output = spec.output or spec.value_field
    rows = _filtered(df, spec)
    tokens = (
        rows.select(pl.col(spec.value_field).cast(pl.Utf8).str.split(spec.delimiter).alias(output))
        .explode(output)
        .with_columns(pl.col(output).str.strip_chars())
        .filter(pl.col(output).is_not_null() & (pl.col(output).str.len_chars() > 0))
    )
    counted = tokens.group_by(output, maintain_order=True).agg(_count().alias(spec.count_column))
    return _sort_and_limit(counted, spec, [output], spec.count_column)


def bucket(df: pl.DataFrame, spec: AggregationSpec) -> pl.DataFrame:
    """
    Count numeric values per labelled range, in declaration order.

    The first range containing a value wins; values outside every range are
    excluded. Ranges with no members are reported with a zero count.
    """
    output = spec.output or "bucket"
    rows = _filtered(df, spec)
    values = rows.select(_numeric_expr(rows, spec.value_field).alias(_VALUE))[_VALUE].to_list()

    counts = {b.label: 0 for b in spec.buckets}
    for value in values:
        if value is None:
            continue
        for b in spec.buckets:
            if b.contains(value):
                counts[b.label] += 1
                break

    counted = pl.DataFrame(
        {output: list(counts.keys()), spec.count_column: list(counts.values())},
        schema={output: pl.Utf8, spec.count_column: pl.Int64},
    )
    return _sort_and_limit(counted, spec, [output], spec.count_column)


def crosstab(df: pl.DataFrame, spec: AggregationSpec) -> pl.DataFrame:
    """
    Two-way contingency table: one row per group, one count column per pivot value.

    Pivot columns follow `pivot_values` when given, otherwise first-seen
    order. `total` counts every row of the group, including pivot values
    without a column. A seen pivot value equal to the group column or
    `total` is renamed `<pivot>_<value>`.
    """
    key = spec.keys[0]
    rows = _filtered(df, spec)
    pairs = (
        rows.select(_key_expr(rows, key), pl.col(spec.pivot).cast(pl.Utf8).alias(_PIVOT))
        .group_by([key.output, _PIVOT], maintain_order=True)
        .agg(_count().alias(spec.count_column))
    )

    row_order: List = []
    pivot_order: List[str] = list(spec.pivot_values)
    cells: Dict[tuple, int] = {}
    totals: Dict = {}
    for group, pivot_value, count in pairs.iter_rows():
        if group not in totals:
            row_order.append(group)
            totals[group] = 0
        totals[group] += count
        if pivot_value is None:
            continue
        if not spec.pivot_values and pivot_value not in pivot_order:
            pivot_order.append(pivot_value)
        cells[(group, pivot_value)] = count

    reserved = {key.output, "total"}
    data = {key.output: row_order}
    for pivot_value in pivot_order:
        column = f"{spec.pivot}_{pivot_value}" if pivot_value in reserved else pivot_value
        data[column] = [cells.get((group, pivot_value), 0) for group in row_order]
    data["total"] = [totals[group] for group in row_order]

    schema = {key.output: pairs.schema[key.output]}
    schema.update({name: pl.Int64 for name in list(data)[1:]})
    table = pl.DataFrame(data, schema=schema)
    return _sort_and_limit(table, spec, [key.output], "total")


OPERATIONS: Dict[AggregationKind, Callable[[pl.DataFrame, AggregationSpec], pl.DataFrame]] = {
    AggregationKind.GROUP_COUNT: group_count,
    AggregationKind.NUMERIC: numeric,
    AggregationKind.EXPLODE: explode,
    AggregationKind.BUCKET: bucket,
    AggregationKind.CROSSTAB: crosstab,
}
