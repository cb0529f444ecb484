"""
Cleaning report generation and formatting.

Tracks what was cleaned, imputed and discarded, and provides output as
dict/JSON and as a plain-text summary.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Any
import json
from datetime import datetime

from catalog_pipeline.errors import ParseError


def _bump(target: Dict[str, int], counts: Dict[str, int]) -> None:
    for key, value in counts.items():
        target[key] = target.get(key, 0) + int(value)


@dataclass
class CleaningReport:
    """
    Report of cleaning operations performed.

    Counters describe what the Cleaner changed or discarded; null_audit holds
    per-stage blank counts for the audited fields.
    """

    # Shape information
    original_shape: Tuple[int, int] = (0, 0)
    cleaned_shape: Tuple[int, int] = (0, 0)

    # Row-level counters
    duplicates_removed: int = 0
    dropped_incomplete: int = 0

    # Field-level counters
    imputed_by_rule: Dict[str, int] = field(default_factory=dict)
    imputed_by_default: Dict[str, int] = field(default_factory=dict)
    parse_failures: Dict[str, int] = field(default_factory=dict)
    values_trimmed: int = 0
    values_split: int = 0

    # Columns dropped by projection
    columns_dropped: List[str] = field(default_factory=list)

    # Blank counts per stage: {"initial": {field: n}, "<rule name>": {...}}
    null_audit: Dict[str, Dict[str, int]] = field(default_factory=dict)

    # Unparseable values (rows dropped)
    parse_errors: List[ParseError] = field(default_factory=list)

    # Per-rule statistics
    rule_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    # All changes made (detailed log)
    changes: List[Dict[str, Any]] = field(default_factory=list)

    # Warnings/issues encountered
    warnings: List[str] = field(default_factory=list)

    # Metadata
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    config_used: Dict[str, Any] = field(default_factory=dict)

    @property
    def rows_removed(self) -> int:
        """Number of rows removed."""
        return self.original_shape[0] - self.cleaned_shape[0]

    @property
    def total_parse_failures(self) -> int:
        return sum(self.parse_failures.values())

    def counts(self) -> Dict[str, int]:
        """Flat counter view (field → count) for output collaborators."""
        return {
            "duplicates_removed": self.duplicates_removed,
            "dropped_incomplete": self.dropped_incomplete,
            "imputed_by_rule": sum(self.imputed_by_rule.values()),
            "imputed_by_default": sum(self.imputed_by_default.values()),
            "parse_failures": self.total_parse_failures,
            "values_trimmed": self.values_trimmed,
            "values_split": self.values_split,
            "columns_dropped": len(self.columns_dropped),
        }

    @property
    def is_noop(self) -> bool:
        """True when cleaning changed nothing (every counter is zero)."""
        return not any(self.counts().values())

    def absorb(self, rule_name: str, stats: Dict[str, Any], parse_errors: List[ParseError]):
        """Fold one rule's stats and parse errors into the report counters."""
        self.duplicates_removed += int(stats.get("duplicates_removed", 0))
        self.dropped_incomplete += int(stats.get("dropped_incomplete", 0))
        self.values_trimmed += int(stats.get("values_trimmed", 0))
        self.values_split += int(stats.get("values_split", 0))
        _bump(self.imputed_by_rule, stats.get("imputed_by_rule", {}))
        _bump(self.imputed_by_default, stats.get("imputed_by_default", {}))
        for column in stats.get("columns_dropped", []):
            if column not in self.columns_dropped:
                self.columns_dropped.append(column)

        for error in parse_errors:
            self.parse_failures[error.field] = self.parse_failures.get(error.field, 0) + 1
        self.parse_errors.extend(parse_errors)

        if stats:
            self.add_rule_stats(rule_name, stats)

    def add_rule_stats(self, rule_name: str, stats: Dict[str, Any]):
        """Add statistics for a rule execution."""
        self.rule_stats[rule_name] = stats

    def add_change(self, change: Dict[str, Any]):
        """Add a change to the log."""
        self.changes.append(change)

    def add_warning(self, warning: str):
        """Add a warning."""
        self.warnings.append(warning)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "original_shape": {"rows": self.original_shape[0], "columns": self.original_shape[1]},
            "cleaned_shape": {"rows": self.cleaned_shape[0], "columns": self.cleaned_shape[1]},
            "summary": {
                **self.counts(),
                "rows_removed": self.rows_removed,
                "warnings_count": len(self.warnings),
            },
            "imputed_by_rule": self.imputed_by_rule,
            "imputed_by_default": self.imputed_by_default,
            "parse_failures": self.parse_failures,
            "columns_dropped": self.columns_dropped,
            "null_audit": self.null_audit,
            "parse_errors": [e.to_dict() for e in self.parse_errors],
            "rule_stats": self.rule_stats,
            "changes": self.changes,
            "warnings": self.warnings,
            "config_used": self.config_used,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_summary(self) -> str:
        """Generate a text summary of the cleaning report."""
        lines = [
            "="*80,
            "DATA CLEANING REPORT",
            "="*80,
            f"Timestamp: {self.timestamp}",
            "",
            "SHAPE CHANGES:",
            f"  Original: {self.original_shape[0]} rows × {self.original_shape[1]} columns",
            f"  Cleaned:  {self.cleaned_shape[0]} rows × {self.cleaned_shape[1]} columns",
            f"  Removed:  {self.rows_removed} rows, {len(self.columns_dropped)} columns",
            "",
            "COUNTERS:",
        ]
        for key, value in self.counts().items():
            lines.append(f"  {key}: {value}")
        lines.append("")

        imputed = sorted(set(self.imputed_by_rule) | set(self.imputed_by_default))
        if imputed:
            lines.append("IMPUTATION:")
            for name in imputed:
                lines.append(
                    f"  {name}: {self.imputed_by_rule.get(name, 0)} by rule, "
                    f"{self.imputed_by_default.get(name, 0)} by default"
                )
            lines.append("")

        if self.parse_errors:
            lines.append(f"PARSE ERRORS ({len(self.parse_errors)}):")
            for error in self.parse_errors[:5]:
                lines.append(f"  {error}")
            if len(self.parse_errors) > 5:
                lines.append(f"  ... and {len(self.parse_errors)-5} more")
            lines.append("")

        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for warning in self.warnings[:5]:
                lines.append(f"  ⚠ {warning}")
            if len(self.warnings) > 5:
                lines.append(f"  ... and {len(self.warnings)-5} more")
            lines.append("")

        lines.append("="*80)

        return "\n".join(lines)

    def __str__(self) -> str:
        """String representation (summary)."""
        return self.to_summary()
