"""
End-to-end run: raw records → Cleaner → canonical records → reports.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from catalog_pipeline.aggregate.aggregator import run_reports
from catalog_pipeline.aggregate.result import ResultTable
from catalog_pipeline.cleaners.data_cleaner import DataCleaner
from catalog_pipeline.cleaners.report import CleaningReport
from catalog_pipeline.core.config import settings
from catalog_pipeline.core.logging_config import setup_logger
from catalog_pipeline.models.record import CanonicalRecord, RawRecord
from catalog_pipeline.registry.loader import Registry, RegistryLoader

logger = setup_logger(__name__)


@dataclass
class PipelineResult:
    """Cleaned records, the cleaning report and one table per report spec."""

    records: List[CanonicalRecord]
    report: CleaningReport
    tables: Dict[str, ResultTable] = field(default_factory=dict)


def load_registry(path: Optional[str] = None) -> Registry:
    """Load the registry at `path`, or settings.REGISTRY_FILE."""
    return RegistryLoader(path or settings.REGISTRY_FILE).load()


def run_pipeline(
    raw_records: Sequence[RawRecord],
    registry: Optional[Registry] = None,
    max_workers: Optional[int] = None,
) -> PipelineResult:
    """
    Clean raw records and compute every report in the registry.

    Args:
        raw_records: Input rows (mappings of column → optional string)
        registry: Pipeline definition (default: settings.REGISTRY_FILE)
        max_workers: Report thread pool size (default: settings.REPORT_WORKERS)

    Raises:
        ConfigError: If the registry or any report is invalid
        StructuralError: If the input is not a sequence of mappings
    """
    registry = registry or load_registry()

    records, report = DataCleaner(registry.cleaning).clean(raw_records)
    logger.info(
        f"Cleaned {report.original_shape[0]} rows into {len(records)} records "
        f"({report.duplicates_removed} duplicates, {report.dropped_incomplete} incomplete)"
    )

    workers = max_workers if max_workers is not None else settings.REPORT_WORKERS
    tables = run_reports(records, registry.reports, max_workers=workers)
    logger.info(f"Computed {len(tables)} reports")

    return PipelineResult(records=records, report=report, tables=tables)
