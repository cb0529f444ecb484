"""
Exception hierarchy for the cleaning and aggregation pipeline.

- StructuralError: input is not a sequence of mappings (fatal)
- ConfigError: imputation config, aggregation spec or registry is invalid (fatal,
  raised before any row is processed)
- ParseError: a single field value could not be converted (row-scoped, recorded
  in the CleaningReport, never raised out of the Cleaner)
"""
from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    pass


class StructuralError(PipelineError):
    """Raised when input records have an unusable shape."""

    pass


class ConfigError(PipelineError):
    """Raised when a configuration or aggregation spec is invalid."""

    pass


class ParseError(PipelineError):
    """
    A field value that could not be parsed.

    Instances are collected in CleaningReport.parse_errors rather than raised.
    """

    def __init__(
        self,
        field: str,
        value: Optional[str],
        reason: str,
        record_id: Optional[str] = None,
    ):
        self.field = field
        self.value = value
        self.reason = reason
        self.record_id = record_id
        super().__init__(f"{field}={value!r}: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "field": self.field,
            "value": self.value,
            "reason": self.reason,
            "record_id": self.record_id,
        }
