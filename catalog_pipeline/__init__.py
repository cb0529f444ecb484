"""
Catalog pipeline: declarative cleaning and aggregation of tabular catalog exports.
"""
from catalog_pipeline.aggregate import AggregationKind, AggregationSpec, ResultTable, aggregate, run_reports
from catalog_pipeline.cleaners import CleaningReport, DataCleaner, ImputationConfig, clean
from catalog_pipeline.errors import ConfigError, ParseError, PipelineError, StructuralError
from catalog_pipeline.models.record import CanonicalRecord
from catalog_pipeline.pipeline import PipelineResult, run_pipeline
from catalog_pipeline.registry import Registry, RegistryLoader

__version__ = "0.1.0"

__all__ = [
    "AggregationKind",
    "AggregationSpec",
    "ResultTable",
    "aggregate",
    "run_reports",
    "CleaningReport",
    "DataCleaner",
    "ImputationConfig",
    "clean",
    "ConfigError",
    "ParseError",
    "PipelineError",
    "StructuralError",
    "CanonicalRecord",
    "PipelineResult",
    "run_pipeline",
    "Registry",
    "RegistryLoader",
]
