"""
Tests for normalizers and predicates.

Validates:
- Idempotency (normalized(normalized(x)) == normalized(x))
- Edge cases
- Error handling
"""
from datetime import date

import polars as pl
import pytest

from catalog_pipeline.errors import ConfigError
from catalog_pipeline.transform.normalizers import (
    NormalizeError,
    is_blank,
    parse_date,
    parse_quantity,
    primary_token,
    split_tokens,
    to_text,
)
from catalog_pipeline.transform.predicates import Predicate, combine


DURATION_UNITS = {"min": "minutes", "Season": "seasons", "Seasons": "seasons"}


class TestIsBlank:
    def test_blank_values(self):
        assert is_blank(None)
        assert is_blank("")
        assert is_blank("   ")
        assert is_blank("\t\n")

    def test_non_blank_values(self):
        assert not is_blank("x")
        assert not is_blank(" Not Given ")
        assert not is_blank(0)


class TestToText:
    def test_dates_become_iso(self):
        assert to_text(date(2021, 9, 25)) == "2021-09-25"

    def test_numbers_stringified(self):
        assert to_text(90) == "90"

    def test_none_and_text_pass_through(self):
        assert to_text(None) is None
        assert to_text("90 min") == "90 min"


class TestSplitTokens:
    def test_trims_and_drops_empty(self):
        assert split_tokens(" Dramas, International Movies ,,") == ["Dramas", "International Movies"]

    def test_blank(self):
        assert split_tokens(None) == []
        assert split_tokens("  ") == []

    def test_custom_delimiter(self):
        assert split_tokens("a|b", "|") == ["a", "b"]


class TestPrimaryToken:
    def test_first_token(self):
        assert primary_token("United States, India") == "United States"

    def test_idempotency(self):
        primary = primary_token("United States, India")
        assert primary_token(primary) == primary

    def test_blank_first_token(self):
        assert primary_token(", France") is None
        assert primary_token(None) is None


class TestParseDate:
    def test_catalog_format(self):
        assert parse_date("September 25, 2021") == date(2021, 9, 25)

    def test_unpadded_day(self):
        assert parse_date("August 4, 2017") == date(2017, 8, 4)

    def test_surrounding_whitespace(self):
        assert parse_date("  January 1, 2020 ") == date(2020, 1, 1)

    def test_idempotency_over_iso(self):
        parsed = parse_date("September 25, 2021")
        assert parse_date(parsed.isoformat()) == parsed

    def test_custom_formats(self):
        assert parse_date("25/09/2021", ["%d/%m/%Y"]) == date(2021, 9, 25)

    def test_unparseable_raises(self):
        with pytest.raises(NormalizeError, match="Unparseable date"):
            parse_date("sometime in 2021")

    def test_empty_raises(self):
        with pytest.raises(NormalizeError, match="empty or None"):
            parse_date("")


class TestParseQuantity:
    def test_minutes(self):
        assert parse_quantity("90 min", DURATION_UNITS) == (90, "minutes")

    def test_seasons_singular_and_plural(self):
        assert parse_quantity("1 Season", DURATION_UNITS) == (1, "seasons")
        assert parse_quantity("3 Seasons", DURATION_UNITS) == (3, "seasons")

    def test_unit_case_insensitive(self):
        assert parse_quantity("2 SEASONS", DURATION_UNITS) == (2, "seasons")

    def test_unknown_unit_raises(self):
        with pytest.raises(NormalizeError, match="Unknown unit"):
            parse_quantity("90 hours", DURATION_UNITS)

    def test_malformed_raises(self):
        with pytest.raises(NormalizeError, match="Expected"):
            parse_quantity("ninety min", DURATION_UNITS)

    def test_empty_raises(self):
        with pytest.raises(NormalizeError, match="empty or None"):
            parse_quantity(None, DURATION_UNITS)


class TestPredicate:
    @pytest.fixture
    def df(self):
        return pl.DataFrame({
            "director": ["Simon Pike", "Not Given", None],
            "title": ["Oddbods", "True and the Rainbow Kingdom", "Oddbods Party"],
        })

    def _mask(self, df, predicates):
        return df.select(combine(predicates, "Not Given").alias("m"))["m"].to_list()

    def test_startswith(self, df):
        assert self._mask(df, [Predicate("title", "startswith", "Oddbods")]) == [True, False, True]

    def test_not_sentinel_excludes_null(self, df):
        assert self._mask(df, [Predicate("director", "not_sentinel")]) == [True, False, False]

    def test_combined_predicates_and(self, df):
        predicates = [
            Predicate("title", "contains", "Odd"),
            Predicate("director", "eq", "Simon Pike"),
        ]
        assert self._mask(df, predicates) == [True, False, False]

    def test_combine_empty(self):
        assert combine([], "Not Given") is None

    def test_from_dict_stringifies_value(self):
        predicate = Predicate.from_dict({"field": "release_year", "op": "eq", "value": 2021})
        assert predicate.value == "2021"

    def test_unknown_op_raises(self):
        with pytest.raises(ConfigError, match="unknown op"):
            Predicate("title", "like", "%x%").validate()

    def test_missing_value_raises(self):
        with pytest.raises(ConfigError, match="needs a value"):
            Predicate("title", "contains").validate()
