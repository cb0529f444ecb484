"""
Tests for rule-chain imputation.

Validates:
- Association (exact and token match), with first-seen tie-breaking
- Foreign-key backfill (max and most_frequent)
- Conditional rules, overrides and sentinel fallback
- Only blank targets are ever written
"""
import polars as pl
import pytest

from catalog_pipeline.cleaners.config import FieldImputation, ImputationConfig, ImputationRule
from catalog_pipeline.cleaners.rules import FieldImputationRule
from catalog_pipeline.errors import ConfigError
from catalog_pipeline.transform.predicates import Predicate


def _frame(data):
    return pl.DataFrame(data, schema={name: pl.Utf8 for name in data})


def _run(df, imputation, sentinel="Not Given"):
    config = ImputationConfig(imputations=[imputation], sentinel=sentinel)
    return FieldImputationRule(config, imputation).clean(df)


class TestAssociation:
    def test_five_appearances_resolve_blank(self):
        """Cast seen five times with one director resolves the blank row."""
        df = _frame({
            "show_id": [f"s{i}" for i in range(6)],
            "cast": ["David Attenborough"] * 6,
            "director": ["Alastair Fothergill"] * 5 + [None],
        })
        imputation = FieldImputation(
            target="director",
            chain=[ImputationRule(kind="association", companion="cast")],
        )
        result = _run(df, imputation)

        assert result.df["director"].to_list()[-1] == "Alastair Fothergill"
        assert result.stats["imputed_by_rule"] == {"director": 1}
        assert result.stats["imputed_by_default"] == {"director": 0}

    def test_most_frequent_wins(self):
        df = _frame({
            "cast": ["A", "A", "A", "A"],
            "director": ["X", "Y", "Y", None],
        })
        imputation = FieldImputation("director", [ImputationRule(kind="association", companion="cast")])
        result = _run(df, imputation)

        assert result.df["director"].to_list()[-1] == "Y"

    def test_tie_broken_by_first_seen(self):
        df = _frame({
            "cast": ["A", "A", "A"],
            "director": ["Y", "X", None],
        })
        imputation = FieldImputation("director", [ImputationRule(kind="association", companion="cast")])
        result = _run(df, imputation)

        assert result.df["director"].to_list()[-1] == "Y"

    def test_token_match(self):
        df = _frame({
            "cast": ["Jitendra Kumar, Shriya Pilgaonkar", "Mayur More, Jitendra Kumar"],
            "director": ["Saurabh Shukla", None],
        })
        exact = FieldImputation("director", [ImputationRule(kind="association", companion="cast")])
        token = FieldImputation(
            "director", [ImputationRule(kind="association", companion="cast", match="token")]
        )

        assert _run(df, exact).df["director"].to_list()[-1] == "Not Given"
        assert _run(df, token).df["director"].to_list()[-1] == "Saurabh Shukla"

    def test_sentinel_is_not_evidence(self):
        df = _frame({
            "cast": ["A", "A"],
            "director": ["Not Given", None],
        })
        imputation = FieldImputation("director", [ImputationRule(kind="association", companion="cast")])
        result = _run(df, imputation)

        assert result.stats["imputed_by_rule"] == {"director": 0}
        assert result.stats["imputed_by_default"] == {"director": 1}

    def test_missing_companion_column_warns(self):
        df = _frame({"director": [None]})
        imputation = FieldImputation("director", [ImputationRule(kind="association", companion="cast")])
        result = _run(df, imputation)

        assert result.df["director"].to_list() == ["Not Given"]
        assert any("cast" in warning for warning in result.warnings)


class TestForeignKey:
    def test_max_per_group(self):
        df = _frame({
            "director": ["Ana Lee", "Ana Lee", "Ana Lee"],
            "country": ["Brazil", "Spain", None],
        })
        imputation = FieldImputation("country", [ImputationRule(kind="foreign_key", key="director")])
        result = _run(df, imputation)

        assert result.df["country"].to_list()[-1] == "Spain"

    def test_most_frequent_per_group(self):
        df = _frame({
            "director": ["Ana Lee"] * 4,
            "country": ["Brazil", "Brazil", "Spain", None],
        })
        imputation = FieldImputation(
            "country", [ImputationRule(kind="foreign_key", key="director", strategy="most_frequent")]
        )
        result = _run(df, imputation)

        assert result.df["country"].to_list()[-1] == "Brazil"

    def test_sentinel_key_forms_no_group(self):
        df = _frame({
            "director": ["Not Given", "Not Given"],
            "country": ["India", None],
        })
        imputation = FieldImputation("country", [ImputationRule(kind="foreign_key", key="director")])
        result = _run(df, imputation)

        assert result.df["country"].to_list() == ["India", "Not Given"]

    def test_overrides_before_sentinel(self):
        df = _frame({
            "director": ["Joey So", "Prakash Satam", "Unknown"],
            "country": [None, None, None],
        })
        imputation = FieldImputation(
            "country",
            [ImputationRule(kind="foreign_key", key="director")],
            override_key="director",
            overrides={"Joey So": "Canada", "Prakash Satam": "India"},
        )
        result = _run(df, imputation)

        assert result.df["country"].to_list() == ["Canada", "India", "Not Given"]
        assert result.stats["imputed_by_rule"] == {"country": 2}
        assert result.stats["imputed_by_default"] == {"country": 1}
        assert result.stats["per_rule"]["overrides"] == 2


class TestConditional:
    def test_all_predicates_must_hold(self):
        df = _frame({
            "title": ["True and the Rainbow Kingdom", "Other Show", "True Tales"],
            "cast": ["Michela Luci, Jamie Watson", "Michela Luci", None],
            "director": [None, None, None],
        })
        rule = ImputationRule(
            kind="conditional",
            value="Todd Kauffman, Mark Thornton",
            where=[
                Predicate("cast", "contains", "Michela Luci"),
                Predicate("title", "startswith", "True"),
            ],
        )
        result = _run(df, FieldImputation("director", [rule]))

        assert result.df["director"].to_list() == [
            "Todd Kauffman, Mark Thornton",
            "Not Given",
            "Not Given",
        ]

    def test_never_overwrites_existing_value(self):
        df = _frame({"title": ["Oddbods"], "director": ["Someone"]})
        rule = ImputationRule(
            kind="conditional", value="Simon Pike", where=[Predicate("title", "startswith", "Oddbods")]
        )
        result = _run(df, FieldImputation("director", [rule]))

        assert result.df["director"].to_list() == ["Someone"]
        assert result.changes == []


class TestChain:
    def test_first_rule_wins(self):
        df = _frame({
            "cast": ["A", "A"],
            "title": ["Oddbods", "Oddbods"],
            "director": ["X", None],
        })
        imputation = FieldImputation(
            "director",
            [
                ImputationRule(kind="association", companion="cast"),
                ImputationRule(
                    kind="conditional", value="Simon Pike",
                    where=[Predicate("title", "startswith", "Oddbods")],
                ),
            ],
        )
        result = _run(df, imputation)

        assert result.df["director"].to_list() == ["X", "X"]
        assert result.stats["per_rule"] == {"association(cast, exact)": 1}

    def test_without_sentinel_blanks_remain(self):
        df = _frame({"director": [None]})
        imputation = FieldImputation("director", [], use_sentinel=False)
        result = _run(df, imputation)

        assert result.df["director"].to_list() == [None]

    def test_missing_target_column_added(self):
        df = _frame({"show_id": ["s1"]})
        result = _run(df, FieldImputation("director"))

        assert result.df["director"].to_list() == ["Not Given"]


class TestImputationConfigValidation:
    def test_association_needs_companion(self):
        config = ImputationConfig(
            imputations=[FieldImputation("director", [ImputationRule(kind="association")])]
        )
        with pytest.raises(ConfigError, match="companion"):
            config.validate()

    def test_unknown_kind(self):
        config = ImputationConfig(
            imputations=[FieldImputation("director", [ImputationRule(kind="guess")])]
        )
        with pytest.raises(ConfigError, match="unknown rule kind"):
            config.validate()

    def test_field_imputed_twice(self):
        config = ImputationConfig(
            imputations=[FieldImputation("director"), FieldImputation("director")]
        )
        with pytest.raises(ConfigError, match="more than once"):
            config.validate()

    def test_overrides_need_key(self):
        config = ImputationConfig(
            imputations=[FieldImputation("country", overrides={"Joey So": "Canada"})]
        )
        with pytest.raises(ConfigError, match="override_key"):
            config.validate()

    def test_from_dict(self):
        config = ImputationConfig.from_dict({
            "identity_field": "show_id",
            "imputations": {
                "director": {"chain": [{"kind": "association", "companion": "cast", "match": "token"}]},
            },
        })
        assert config.imputations[0].target == "director"
        assert config.imputations[0].chain[0].match == "token"
