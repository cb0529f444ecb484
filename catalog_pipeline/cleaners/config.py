"""
Configuration for data cleaning operations.

Declares the identity field, required fields, imputation rule chains and the
column transformations the Cleaner applies. Plain declarative data: build it
in code or load it from the YAML registry.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from catalog_pipeline.errors import ConfigError
from catalog_pipeline.transform.normalizers import DEFAULT_DATE_FORMATS
from catalog_pipeline.transform.predicates import Predicate, parse_predicates

DEFAULT_SENTINEL = "Not Given"

RULE_KINDS = ("association", "foreign_key", "conditional")
MATCH_MODES = ("exact", "token")
GROUP_STRATEGIES = ("max", "most_frequent")


@dataclass
class ImputationRule:
    """
    One link of a field's imputation chain.

    Kinds:
    - association: companion value → most frequent target among rows sharing it
      (match "exact" on the whole value, or "token" on each delimited member)
    - foreign_key: per-key group value (max or most frequent) backfills blanks
    - conditional: fixed value where every predicate in `where` holds
    """

    kind: str
    companion: Optional[str] = None  # association
    match: str = "exact"  # association
    key: Optional[str] = None  # foreign_key
    strategy: str = "max"  # foreign_key
    value: Optional[str] = None  # conditional
    where: List[Predicate] = field(default_factory=list)  # conditional

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImputationRule":
        """Parse a rule from YAML dict."""
        if not isinstance(data, dict) or "kind" not in data:
            raise ConfigError(f"Imputation rule needs a 'kind': {data!r}")
        return cls(
            kind=data["kind"],
            companion=data.get("companion"),
            match=data.get("match", "exact"),
            key=data.get("key"),
            strategy=data.get("strategy", "max"),
            value=data.get("value"),
            where=parse_predicates(data.get("where")),
        )

    def validate(self, target: str) -> None:
        if self.kind not in RULE_KINDS:
            raise ConfigError(f"Imputation of '{target}': unknown rule kind '{self.kind}'")

        if self.kind == "association":
            if not self.companion:
                raise ConfigError(f"Imputation of '{target}': association rule needs 'companion'")
            if self.match not in MATCH_MODES:
                raise ConfigError(f"Imputation of '{target}': unknown match mode '{self.match}'")
        elif self.kind == "foreign_key":
            if not self.key:
                raise ConfigError(f"Imputation of '{target}': foreign_key rule needs 'key'")
            if self.strategy not in GROUP_STRATEGIES:
                raise ConfigError(f"Imputation of '{target}': unknown strategy '{self.strategy}'")
        else:
            if self.value is None or not self.where:
                raise ConfigError(
                    f"Imputation of '{target}': conditional rule needs 'value' and 'where'"
                )
            for predicate in self.where:
                predicate.validate()

    def describe(self) -> str:
        if self.kind == "association":
            return f"association({self.companion}, {self.match})"
        if self.kind == "foreign_key":
            return f"foreign_key({self.key}, {self.strategy})"
        return f"conditional({self.value!r})"


@dataclass
class FieldImputation:
    """
    Imputation chain for one target field.

    Order: chain rules in sequence → overrides keyed by override_key → sentinel.
    """

    target: str
    chain: List[ImputationRule] = field(default_factory=list)
    override_key: Optional[str] = None
    overrides: Dict[str, str] = field(default_factory=dict)
    use_sentinel: bool = True

    @classmethod
    def from_dict(cls, target: str, data: Optional[Dict[str, Any]]) -> "FieldImputation":
        data = data or {}
        return cls(
            target=target,
            chain=[ImputationRule.from_dict(item) for item in data.get("chain", [])],
            override_key=data.get("override_key"),
            overrides={str(k): str(v) for k, v in (data.get("overrides") or {}).items()},
            use_sentinel=data.get("use_sentinel", True),
        )

    def validate(self) -> None:
        for rule in self.chain:
            rule.validate(self.target)
        if self.overrides and not self.override_key:
            raise ConfigError(f"Imputation of '{self.target}': overrides need 'override_key'")


@dataclass
class ImputationConfig:
    """
    Configuration for data cleaning.

    Controls identity, completeness, imputation and column shaping.
    """

    # ==================== Identity & Completeness ====================

    identity_field: str = "show_id"
    required_fields: List[str] = field(default_factory=list)
    audit_fields: List[str] = field(default_factory=list)

    # ==================== Imputation ====================

    imputations: List[FieldImputation] = field(default_factory=list)
    sentinel: str = DEFAULT_SENTINEL

    # ==================== Column Shaping ====================

    trim_whitespace: bool = True
    drop_fields: List[str] = field(default_factory=list)
    primary_value_fields: List[str] = field(default_factory=list)
    delimiter: str = ","
    retain_suffix: Optional[str] = None  # keep full multi-valued text as <field><suffix>

    # ==================== Type Coercion ====================

    date_fields: List[str] = field(default_factory=list)
    date_formats: List[str] = field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))
    quantity_fields: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "ImputationConfig":
        """
        Config for the content catalog export.

        Director is imputed from cast, country from director; rows missing
        date_added, rating or duration are dropped.
        """
        return cls(
            identity_field="show_id",
            required_fields=["type", "title", "rating", "duration", "date_added"],
            audit_fields=[
                "show_id", "type", "title", "director", "cast", "country",
                "date_added", "release_year", "rating", "duration", "listed_in",
            ],
            imputations=[
                FieldImputation(
                    target="director",
                    chain=[
                        ImputationRule(kind="association", companion="cast", match="exact"),
                        ImputationRule(kind="association", companion="cast", match="token"),
                    ],
                ),
                FieldImputation(
                    target="country",
                    chain=[ImputationRule(kind="foreign_key", key="director", strategy="max")],
                ),
            ],
            drop_fields=["cast", "description"],
            primary_value_fields=["country"],
            date_fields=["date_added"],
            quantity_fields={
                "duration": {"min": "minutes", "Season": "seasons", "Seasons": "seasons"},
            },
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ImputationConfig":
        """Parse config from YAML dict; omitted keys keep their defaults."""
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Cleaning config must be a mapping, got {type(data).__name__}")

        imputations = [
            FieldImputation.from_dict(target, spec)
            for target, spec in (data.get("imputations") or {}).items()
        ]

        kwargs: Dict[str, Any] = {"imputations": imputations}
        for name in (
            "identity_field", "required_fields", "audit_fields", "sentinel",
            "trim_whitespace", "drop_fields", "primary_value_fields", "delimiter",
            "retain_suffix", "date_fields", "date_formats", "quantity_fields",
        ):
            if name in data:
                kwargs[name] = data[name]

        config = cls(**kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ConfigError: On missing identity, duplicate targets or bad rules
        """
        if not self.identity_field:
            raise ConfigError("identity_field must be set")
        if not self.sentinel:
            raise ConfigError("sentinel must be a non-empty string")
        if not self.delimiter:
            raise ConfigError("delimiter must be a non-empty string")

        targets = [imputation.target for imputation in self.imputations]
        duplicates = {t for t in targets if targets.count(t) > 1}
        if duplicates:
            raise ConfigError(f"Fields imputed more than once: {sorted(duplicates)}")
        if self.identity_field in targets:
            raise ConfigError(f"Identity field '{self.identity_field}' cannot be imputed")

        for imputation in self.imputations:
            imputation.validate()

        for name, units in self.quantity_fields.items():
            if not isinstance(units, dict) or not units:
                raise ConfigError(f"Quantity field '{name}' needs a unit alias mapping")

        if not self.date_formats:
            raise ConfigError("date_formats must list at least one format")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "identity_field": self.identity_field,
            "required_fields": list(self.required_fields),
            "sentinel": self.sentinel,
            "imputations": {
                imputation.target: [rule.describe() for rule in imputation.chain]
                for imputation in self.imputations
            },
            "drop_fields": list(self.drop_fields),
            "primary_value_fields": list(self.primary_value_fields),
            "date_fields": list(self.date_fields),
            "quantity_fields": sorted(self.quantity_fields),
        }
