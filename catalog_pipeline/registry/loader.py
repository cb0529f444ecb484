"""
Registry loader - parses YAML pipeline definitions into typed Python objects.

A registry bundles:
- The cleaning configuration (ImputationConfig)
- Named aggregation specs run over the cleaned records
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from catalog_pipeline.aggregate.spec import AggregationSpec
from catalog_pipeline.cleaners.config import ImputationConfig
from catalog_pipeline.errors import ConfigError

DEFAULT_REGISTRY_PATH = Path(__file__).parent / "catalog.yaml"


@dataclass
class Registry:
    """Cleaning configuration plus the reports computed from its output."""

    version: int
    cleaning: ImputationConfig
    reports: List[AggregationSpec] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registry":
        """Parse full registry from YAML dict."""
        if not isinstance(data, dict):
            raise ConfigError(f"Registry must be a mapping, got {type(data).__name__}")
        if "version" not in data:
            raise ConfigError("Registry needs a 'version'")

        cleaning = ImputationConfig.from_dict(data.get("cleaning"))
        reports = [
            AggregationSpec.from_dict(item, sentinel=cleaning.sentinel)
            for item in data.get("reports") or []
        ]
        return cls(version=data["version"], cleaning=cleaning, reports=reports)

    def validate(self) -> None:
        """
        Validate the entire registry.

        Checks:
        - Cleaning config is valid
        - Report names are unique
        - No report reads a field the cleaner drops
        """
        self.cleaning.validate()

        names = [spec.name for spec in self.reports]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ConfigError(f"Duplicate report names: {sorted(duplicates)}")

        dropped = set(self.cleaning.drop_fields)
        for spec in self.reports:
            spec.validate()
            used = dropped.intersection(spec.referenced_fields())
            if used:
                raise ConfigError(
                    f"Report '{spec.name}' reads field(s) dropped by cleaning: {sorted(used)}"
                )

    def get_report(self, name: str) -> AggregationSpec:
        """Get a report spec by name."""
        for spec in self.reports:
            if spec.name == name:
                return spec
        raise ConfigError(f"Report '{name}' not found in registry")


class RegistryLoader:
    """
    Loader for pipeline registry configuration.

    Loads the YAML file and caches the parsed registry in memory.
    """

    def __init__(self, registry_path: Optional[Path] = None):
        """
        Initialize loader.

        Args:
            registry_path: Path to registry YAML file (default: bundled catalog.yaml)
        """
        self.registry_path = Path(registry_path) if registry_path else DEFAULT_REGISTRY_PATH
        self._cache: Optional[Registry] = None

    def load(self, force_reload: bool = False) -> Registry:
        """
        Load and validate registry.

        Args:
            force_reload: If True, bypass cache and reload from disk

        Returns:
            Validated Registry object

        Raises:
            ConfigError: If the file is missing, malformed or invalid
        """
        if self._cache and not force_reload:
            return self._cache

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read registry {self.registry_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in registry {self.registry_path}: {e}") from e

        registry = Registry.from_dict(data)
        registry.validate()

        self._cache = registry
        return registry
