"""
Grouped statistics and breakdowns over canonical records.
"""
from .aggregator import aggregate, aggregate_frame, build_frame, run_reports
from .result import ResultTable
from .spec import AggregationKind, AggregationSpec, Bucket, GroupKey

__all__ = [
    "aggregate",
    "aggregate_frame",
    "build_frame",
    "run_reports",
    "ResultTable",
    "AggregationKind",
    "AggregationSpec",
    "Bucket",
    "GroupKey",
]
