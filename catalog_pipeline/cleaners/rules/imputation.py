"""
Rule-chain imputation for blank fields.

One FieldImputationRule runs the whole chain for a single target field:

1. chain rules in configured order
   - association: companion value (or each delimited companion token) →
     most frequent non-blank target among rows sharing it
   - foreign_key: per-key group value (max or most frequent) backfills blanks
   - conditional: fixed value where every predicate holds
2. explicit overrides keyed by another field
3. sentinel for anything still blank

Only blank targets are ever written. Sentinel values never count as evidence.
"""
import logging
from typing import Dict, List, Optional, Sequence

import polars as pl

from catalog_pipeline.transform.normalizers import is_blank, split_tokens
from catalog_pipeline.transform.predicates import combine
from ..base import ChangeType, CleaningResult, CleaningRule
from ..config import FieldImputation, ImputationConfig, ImputationRule

logger = logging.getLogger(__name__)


def _most_frequent(counts: Dict[str, int]) -> str:
    """Highest count wins; ties go to the first value encountered (dict order)."""
    best_value, best_count = None, -1
    for value, count in counts.items():
        if count > best_count:
            best_value, best_count = value, count
    return best_value


class FieldImputationRule(CleaningRule):
    """Fill blanks in one field via its imputation chain."""

    def __init__(self, config: ImputationConfig, imputation: FieldImputation, order: int = 0):
        self.config = config
        self.imputation = imputation
        self.order = order

    @property
    def name(self) -> str:
        return f"Imputation: {self.imputation.target}"

    @property
    def priority(self) -> int:
        return 20 + self.order  # After dedup, before completeness checks

    @property
    def description(self) -> str:
        steps = [rule.describe() for rule in self.imputation.chain]
        if self.imputation.overrides:
            steps.append(f"overrides({self.imputation.override_key})")
        if self.imputation.use_sentinel:
            steps.append(f"sentinel({self.config.sentinel!r})")
        return " → ".join(steps)

    def _is_evidence(self, value: Optional[str]) -> bool:
        return not is_blank(value) and value != self.config.sentinel

    def clean(self, df: pl.DataFrame) -> CleaningResult:
        target = self.imputation.target
        result = CleaningResult(df=df)

        if target not in df.columns:
            result.df = df.with_columns(pl.lit(None, dtype=pl.Utf8).alias(target))
            result.add_change(
                ChangeType.COLUMN_ADDED,
                f"Added missing imputed column '{target}'",
                {"column": target},
            )

        values: List[Optional[str]] = result.df[target].to_list()
        blanks = {i for i, value in enumerate(values) if is_blank(value)}

        result.stats["blank_before"] = len(blanks)
        result.stats["imputed_by_rule"] = {target: 0}
        result.stats["imputed_by_default"] = {target: 0}
        per_rule: Dict[str, int] = {}
        result.stats["per_rule"] = per_rule

        if not blanks:
            logger.info("No blank '%s' values to impute", target)
            return result

        for rule in self.imputation.chain:
            filled = self._apply_rule(rule, result, values, blanks)
            per_rule[rule.describe()] = per_rule.get(rule.describe(), 0) + filled
            result.stats["imputed_by_rule"][target] += filled
            if not blanks:
                break

        if blanks and self.imputation.overrides:
            filled = self._apply_overrides(result, values, blanks)
            per_rule["overrides"] = filled
            result.stats["imputed_by_rule"][target] += filled

        if blanks and self.imputation.use_sentinel:
            for i in blanks:
                values[i] = self.config.sentinel
            result.stats["imputed_by_default"][target] = len(blanks)
            blanks = set()

        result.df = result.df.with_columns(pl.Series(target, values, dtype=pl.Utf8))

        by_rule = result.stats["imputed_by_rule"][target]
        by_default = result.stats["imputed_by_default"][target]
        if by_rule or by_default:
            result.add_change(
                ChangeType.VALUE_IMPUTED,
                f"Imputed {by_rule} '{target}' values by rule, {by_default} by default",
                {"column": target, "by_rule": by_rule, "by_default": by_default},
            )
        logger.info(
            "Imputed '%s': %s by rule, %s by default (%s)",
            target,
            by_rule,
            by_default,
            self.description,
        )
        return result

    # ------------------------------------------------------------------ #

    def _apply_rule(
        self,
        rule: ImputationRule,
        result: CleaningResult,
        values: List[Optional[str]],
        blanks: set,
    ) -> int:
        if rule.kind == "association":
            return self._associate(rule, result, values, blanks)
        if rule.kind == "foreign_key":
            return self._by_foreign_key(rule, result, values, blanks)
        return self._conditional(rule, result, values, blanks)

    def _column(self, result: CleaningResult, column: str, rule: ImputationRule) -> Optional[Sequence]:
        if column not in result.df.columns:
            result.add_warning(
                f"{rule.describe()} skipped for '{self.imputation.target}': column '{column}' not found"
            )
            return None
        return result.df[column].to_list()

    def _associate(self, rule: ImputationRule, result, values, blanks) -> int:
        companions = self._column(result, rule.companion, rule)
        if companions is None:
            return 0

        def keys_for(companion: Optional[str]) -> List[str]:
            if is_blank(companion):
                return []
            if rule.match == "token":
                return split_tokens(companion, self.config.delimiter)
            return [companion.strip()]

        # companion key → {target value: count} in first-seen order
        lookup: Dict[str, Dict[str, int]] = {}
        for companion, value in zip(companions, values):
            if not self._is_evidence(value):
                continue
            for key in keys_for(companion):
                counts = lookup.setdefault(key, {})
                counts[value] = counts.get(value, 0) + 1

        filled = 0
        for i in sorted(blanks):
            for key in keys_for(companions[i]):
                if key in lookup:
                    values[i] = _most_frequent(lookup[key])
                    blanks.discard(i)
                    filled += 1
                    break

        logger.debug("%s filled %s values from %s keys", rule.describe(), filled, len(lookup))
        return filled

    def _by_foreign_key(self, rule: ImputationRule, result, values, blanks) -> int:
        keys = self._column(result, rule.key, rule)
        if keys is None:
            return 0

        groups: Dict[str, Dict[str, int]] = {}
        for key, value in zip(keys, values):
            if not self._is_evidence(key) or not self._is_evidence(value):
                continue
            counts = groups.setdefault(key, {})
            counts[value] = counts.get(value, 0) + 1

        if rule.strategy == "max":
            resolved = {key: max(counts) for key, counts in groups.items()}
        else:
            resolved = {key: _most_frequent(counts) for key, counts in groups.items()}

        filled = 0
        for i in sorted(blanks):
            if keys[i] in resolved:
                values[i] = resolved[keys[i]]
                blanks.discard(i)
                filled += 1
        return filled

    def _conditional(self, rule: ImputationRule, result, values, blanks) -> int:
        missing = [p.field for p in rule.where if p.field not in result.df.columns]
        if missing:
            result.add_warning(
                f"{rule.describe()} skipped for '{self.imputation.target}': columns {missing} not found"
            )
            return 0

        mask = result.df.select(combine(rule.where, self.config.sentinel).alias("m"))["m"].to_list()
        filled = 0
        for i in sorted(blanks):
            if mask[i]:
                values[i] = rule.value
                blanks.discard(i)
                filled += 1
        return filled

    def _apply_overrides(self, result: CleaningResult, values, blanks) -> int:
        key_column = self.imputation.override_key
        if key_column not in result.df.columns:
            result.add_warning(
                f"Overrides skipped for '{self.imputation.target}': column '{key_column}' not found"
            )
            return 0

        keys = result.df[key_column].to_list()
        filled = 0
        for i in sorted(blanks):
            override = self.imputation.overrides.get(keys[i])
            if override is not None:
                values[i] = override
                blanks.discard(i)
                filled += 1
        return filled
