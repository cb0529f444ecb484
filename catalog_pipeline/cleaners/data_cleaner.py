"""
Main data cleaning orchestrator using Polars.

Runs cleaning rules in priority order, audits blank counts between steps and
generates a comprehensive report. Row-level problems never raise; only
structurally invalid input (StructuralError) or a broken rule
(CleaningRuleError) aborts the call.
"""
from typing import Dict, List, Optional, Sequence, Tuple
import polars as pl
import logging

from catalog_pipeline.errors import PipelineError
from catalog_pipeline.models.record import (
    CanonicalRecord,
    RawRecord,
    frame_to_records,
    records_to_frame,
)
from .base import CleaningRule, CleaningResult, CleaningRuleError, blank_mask
from .config import ImputationConfig
from .report import CleaningReport


logger = logging.getLogger(__name__)


class DataCleaner:
    """
    Orchestrates data cleaning operations.

    Runs multiple cleaning rules in priority order and tracks all changes.
    """

    def __init__(self, config: Optional[ImputationConfig] = None):
        """
        Initialize the data cleaner.

        Args:
            config: Cleaning configuration. If None, uses default config.

        Raises:
            ConfigError: If the configuration is invalid
        """
        self.config = config or ImputationConfig.default()
        self.config.validate()
        self.rules: List[CleaningRule] = []

    def register_rule(self, rule: CleaningRule):
        """
        Register a cleaning rule.

        Args:
            rule: Cleaning rule to register
        """
        self.rules.append(rule)
        # Sort rules by priority (lower = earlier); stable for equal priorities
        self.rules.sort(key=lambda r: r.priority)

    def register_rules(self, rules: List[CleaningRule]):
        """
        Register multiple cleaning rules.

        Args:
            rules: List of rules to register
        """
        for rule in rules:
            self.register_rule(rule)

    def register_default_rules(self):
        """Register the standard rule set derived from the config."""
        # Import rules here to avoid circular imports
        from .rules.whitespace import WhitespaceRule
        from .rules.deduplicate import DeduplicateRule
        from .rules.imputation import FieldImputationRule
        from .rules.completeness import CompletenessRule
        from .rules.projection import ProjectionRule
        from .rules.primary_value import PrimaryValueRule
        from .rules.dates import DateNormalizationRule
        from .rules.quantities import QuantityRule

        if self.config.trim_whitespace:
            self.register_rule(WhitespaceRule(self.config))

        self.register_rule(DeduplicateRule(self.config))

        for order, imputation in enumerate(self.config.imputations):
            self.register_rule(FieldImputationRule(self.config, imputation, order))

        self.register_rule(CompletenessRule(self.config))

        if self.config.drop_fields:
            self.register_rule(ProjectionRule(self.config))

        if self.config.primary_value_fields:
            self.register_rule(PrimaryValueRule(self.config))

        if self.config.date_fields:
            self.register_rule(DateNormalizationRule(self.config))

        if self.config.quantity_fields:
            self.register_rule(QuantityRule(self.config))

    def _audit(self, df: pl.DataFrame) -> Dict[str, int]:
        return {
            column: int(blank_mask(df, column).sum())
            for column in self.config.audit_fields
            if column in df.columns
        }

    def clean_frame(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, CleaningReport]:
        """
        Clean a Polars DataFrame using registered rules.

        Args:
            df: Input Polars DataFrame to clean

        Returns:
            Tuple of (cleaned DataFrame, cleaning report)
        """
        # Initialize report
        report = CleaningReport(
            original_shape=(df.height, df.width),
            config_used=self.config.to_dict()
        )

        if df.height == 0:
            logger.info("No records to clean")
            report.cleaned_shape = (0, df.width)
            return df, report

        # Clone to avoid modifying original
        df_cleaned = df.clone()

        if self.config.audit_fields:
            report.null_audit["initial"] = self._audit(df_cleaned)

        logger.info(f"Starting data cleaning with {len(self.rules)} rules")

        # Run each rule in priority order
        for rule in self.rules:
            logger.info(f"Running rule: {rule.name} (priority={rule.priority})")

            try:
                result: CleaningResult = rule.clean(df_cleaned)
            except PipelineError:
                raise
            except Exception as e:
                error_msg = f"Rule '{rule.name}' failed: {str(e)}"
                logger.error(error_msg, exc_info=True)
                raise CleaningRuleError(error_msg) from e

            # Update DataFrame
            df_cleaned = result.df

            # Track changes
            for change in result.changes:
                report.add_change(change.to_dict())

            # Track warnings
            for warning in result.warnings:
                report.add_warning(f"[{rule.name}] {warning}")

            # Track statistics
            report.absorb(rule.name, result.stats, result.parse_errors)

            if self.config.audit_fields:
                report.null_audit[rule.name] = self._audit(df_cleaned)

            logger.info(f"Rule '{rule.name}' completed: {len(result.changes)} changes, {len(result.warnings)} warnings")

        # Update final shape
        report.cleaned_shape = (df_cleaned.height, df_cleaned.width)

        logger.info(f"Cleaning completed: {report.original_shape} → {report.cleaned_shape}")

        return df_cleaned, report

    def clean(self, records: Sequence[RawRecord]) -> Tuple[List[CanonicalRecord], CleaningReport]:
        """
        Clean raw records into canonical records.

        Args:
            records: Sequence of mappings (column → optional string)

        Returns:
            Tuple of (canonical records, cleaning report)

        Raises:
            StructuralError: If records is not a sequence of mappings, or the
                identity field is absent from every record
        """
        df = records_to_frame(records)
        if not self.rules:
            self.register_default_rules()
        df_cleaned, report = self.clean_frame(df)
        return frame_to_records(df_cleaned), report

    def __repr__(self) -> str:
        return f"<DataCleaner: {len(self.rules)} rules registered>"


def clean(
    raw_records: Sequence[RawRecord],
    config: Optional[ImputationConfig] = None,
) -> Tuple[List[CanonicalRecord], CleaningReport]:
    """Clean raw records with the default rule set for `config`."""
    return DataCleaner(config).clean(raw_records)
