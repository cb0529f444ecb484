"""
Tests for the DataCleaner orchestrator and the clean() entry point.

Validates:
- End-to-end cleaning of the sample catalog
- Report counters
- Idempotence (re-cleaning canonical output changes nothing)
- Structural errors on malformed input
"""
from datetime import date

import polars as pl
import pytest

from catalog_pipeline.cleaners import CleaningRule, CleaningResult, CleaningRuleError, DataCleaner, clean
from catalog_pipeline.cleaners.config import ImputationConfig
from catalog_pipeline.errors import ConfigError, StructuralError
from catalog_pipeline.models.record import CanonicalRecord


@pytest.fixture
def cleaned(raw_records, config):
    return clean(raw_records, config)


class TestClean:
    def test_rows_kept(self, cleaned, by_id):
        records, _ = cleaned
        assert sorted(by_id(records)) == ["s1", "s2", "s3", "s4", "s6", "s7", "s8"]

    def test_duplicate_keeps_first(self, cleaned, by_id):
        records, report = cleaned
        assert by_id(records)["s1"]["title"] == "Our Planet Special"
        assert report.duplicates_removed == 1

    def test_identity_unique(self, cleaned):
        records, _ = cleaned
        ids = [record["show_id"] for record in records]
        assert len(ids) == len(set(ids))

    def test_incomplete_row_dropped(self, cleaned):
        records, report = cleaned
        assert report.dropped_incomplete == 1
        for record in records:
            for field in ("type", "title", "rating", "duration", "date_added"):
                assert record[field] not in (None, "")

    def test_director_imputation(self, cleaned, by_id):
        records, report = cleaned
        rows = by_id(records)
        assert rows["s2"]["director"] == "Alastair Fothergill"
        assert rows["s3"]["director"] == "Saurabh Shukla"
        assert rows["s7"]["director"] == "Not Given"
        assert report.imputed_by_rule["director"] == 2
        assert report.imputed_by_default["director"] == 1

    def test_country_imputation(self, cleaned, by_id):
        records, report = cleaned
        rows = by_id(records)
        assert rows["s2"]["country"] == "United Kingdom"
        assert rows["s6"]["country"] == "Not Given"
        assert rows["s7"]["country"] == "Not Given"
        assert report.imputed_by_rule["country"] == 1
        assert report.imputed_by_default["country"] == 2

    def test_sentinel_coverage(self, cleaned):
        records, _ = cleaned
        for record in records:
            assert record["director"]
            assert record["country"]

    def test_projection(self, cleaned):
        records, report = cleaned
        assert "cast" not in records[0]
        assert "description" not in records[0]
        assert report.columns_dropped == ["cast", "description"]

    def test_primary_country(self, cleaned, by_id):
        records, report = cleaned
        assert by_id(records)["s8"]["country"] == "United States"
        assert report.values_split == 1

    def test_dates(self, cleaned, by_id):
        records, _ = cleaned
        assert by_id(records)["s1"]["date_added"] == date(2021, 9, 25)

    def test_quantities(self, cleaned, by_id):
        records, _ = cleaned
        rows = by_id(records)
        quantity = rows["s3"].quantity("duration")
        assert quantity.magnitude == 2
        assert quantity.unit == "seasons"
        assert quantity.text == "2 Seasons"
        assert rows["s1"]["duration_value"] == 90
        assert rows["s1"]["duration_unit"] == "minutes"

    def test_records_are_immutable(self, cleaned):
        records, _ = cleaned
        assert isinstance(records[0], CanonicalRecord)
        with pytest.raises(TypeError):
            records[0].data["title"] = "changed"

    def test_null_audit(self, cleaned):
        _, report = cleaned
        assert report.null_audit["initial"]["director"] == 3
        assert report.null_audit["Imputation: director"]["director"] == 0
        assert "cast" not in report.null_audit["Column Projection"]

    def test_input_not_mutated(self, raw_records, config):
        snapshot = [dict(row) for row in raw_records]
        clean(raw_records, config)
        assert raw_records == snapshot


class TestIdempotence:
    def test_reclean_is_noop(self, cleaned, config):
        records, _ = cleaned
        again, report = clean(records, config)

        assert again == records
        assert report.is_noop
        assert report.counts() == {key: 0 for key in report.counts()}

    def test_reclean_with_long_form_dates_only(self, raw_records):
        config = ImputationConfig.default()
        config.date_formats = ["%B %d, %Y"]
        records, _ = clean(raw_records, config)
        again, report = clean(records, config)

        assert len(records) == 7
        assert again == records
        assert report.is_noop


class TestParseFailures:
    @pytest.fixture
    def rows(self, raw_records):
        extra = [dict(raw_records[0]), dict(raw_records[0])]
        extra[0].update(show_id="s9", date_added="soon")
        extra[1].update(show_id="s10", duration="about an hour")
        return raw_records + extra

    def test_unparseable_rows_dropped(self, rows, config, by_id):
        records, _ = clean(rows, config)
        assert "s9" not in by_id(records)
        assert "s10" not in by_id(records)
        assert len(records) == 7

    def test_failures_reported(self, rows, config):
        _, report = clean(rows, config)

        assert report.parse_failures == {"date_added": 1, "duration": 1}
        assert report.total_parse_failures == 2
        errors = {error.record_id: error for error in report.parse_errors}
        assert sorted(errors) == ["s10", "s9"]
        assert errors["s9"].field == "date_added"
        assert errors["s9"].value == "soon"
        assert errors["s10"].field == "duration"
        assert report.to_dict()["parse_errors"][0]["record_id"] in ("s9", "s10")


class TestReport:
    def test_serialization(self, cleaned):
        _, report = cleaned
        data = report.to_dict()
        assert data["summary"]["duplicates_removed"] == 1
        assert "DATA CLEANING REPORT" in report.to_summary()
        assert '"duplicates_removed": 1' in report.to_json()


class TestStructuralErrors:
    @pytest.mark.parametrize("bad_input", ["show_id", {"show_id": "s1"}, 42])
    def test_not_a_sequence_of_mappings(self, bad_input, config):
        with pytest.raises(StructuralError):
            clean(bad_input, config)

    def test_element_not_a_mapping(self, config):
        with pytest.raises(StructuralError, match="Record 1"):
            clean([{"show_id": "s1"}, ["s2"]], config)

    def test_identity_absent_everywhere(self, config):
        with pytest.raises(StructuralError, match="show_id"):
            clean([{"title": "a"}, {"title": "b"}], config)

    def test_empty_input(self, config):
        records, report = clean([], config)
        assert records == []
        assert report.is_noop

    def test_invalid_config_rejected_before_rows(self):
        with pytest.raises(ConfigError):
            DataCleaner(ImputationConfig(identity_field=""))


class TestRuleFailure:
    def test_unexpected_error_wrapped(self, config):
        class BrokenRule(CleaningRule):
            @property
            def name(self):
                return "Broken"

            def clean(self, df: pl.DataFrame) -> CleaningResult:
                raise RuntimeError("boom")

        cleaner = DataCleaner(config)
        cleaner.register_rule(BrokenRule())
        with pytest.raises(CleaningRuleError, match="boom"):
            cleaner.clean([{"show_id": "s1"}])
