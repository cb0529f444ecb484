"""
Pipeline registry: YAML definitions of cleaning rules and reports.
"""
from .loader import DEFAULT_REGISTRY_PATH, Registry, RegistryLoader

__all__ = ["DEFAULT_REGISTRY_PATH", "Registry", "RegistryLoader"]
