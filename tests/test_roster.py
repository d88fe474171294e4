"""Tests for loading and validating the category table and roster."""

import json
import warnings
from datetime import date

import pytest

from displacement_api.core.roster import build_roster, load_roster, parse_entity
from displacement_api.domain.entities import DisplacementType, MarketTier
from displacement_api.domain.exceptions import (
    ConfigurationError,
    ConfigurationInvariantViolation,
)


def _entity_raw(**overrides) -> dict:
    raw = {
        "name": "Acme AI",
        "category": "coding",
        "relative_scale": 5,
        "launch_date": "2024-03-01",
        "displacement_type": "direct",
        "operational_factor": 1,
        "market_tier": "enterprise",
    }
    raw.update(overrides)
    return raw


def _document(categories=None, entities=None) -> dict:
    return {
        "inflection_date": "2022-11-30",
        "categories": categories
        if categories is not None
        else [
            {"id": "coding", "name": "AI Coding", "allocation_weight": 0.6},
            {"id": "support", "name": "Support AI", "allocation_weight": 0.4},
        ],
        "entities": entities if entities is not None else [_entity_raw()],
    }


class TestPackagedRoster:
    """The roster shipped with the service."""

    def test_loads_without_invariant_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConfigurationInvariantViolation)
            roster = load_roster()

        assert len(roster.categories) == 9
        assert len(roster.entities) == 185
        assert roster.warnings == ()
        assert roster.inflection_date == date(2022, 11, 30)

    def test_allocation_weights_sum_to_one(self):
        roster = load_roster()
        total = sum(c.allocation_weight for c in roster.categories.values())
        assert total == pytest.approx(1.0, abs=0.01)

    def test_entity_names_unique(self):
        roster = load_roster()
        names = [e.name for e in roster.entities]
        assert len(names) == len(set(names))

    def test_company_without_product_has_no_launch_date(self):
        roster = load_roster()
        ssi = next(e for e in roster.entities if e.name == "Safe Superintelligence")
        assert ssi.launch_date is None
        assert ssi.operational_factor == 0


class TestParseEntity:
    def test_parses_enums_and_dates(self):
        entity = parse_entity(_entity_raw(displacement_type="augmentation", market_tier="prosumer"))

        assert entity.displacement_type is DisplacementType.AUGMENTATION
        assert entity.market_tier is MarketTier.PROSUMER
        assert entity.launch_date == date(2024, 3, 1)

    def test_null_launch_date(self):
        assert parse_entity(_entity_raw(launch_date=None)).launch_date is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"displacement_type": "replacement"},
            {"market_tier": "government"},
            {"launch_date": "not-a-date"},
            {"relative_scale": -1},
            {"operational_factor": 1.5},
        ],
    )
    def test_malformed_entries_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            parse_entity(_entity_raw(**overrides))

    def test_missing_field_rejected(self):
        raw = _entity_raw()
        del raw["market_tier"]
        with pytest.raises(ConfigurationError):
            parse_entity(raw)


class TestBuildRoster:
    def test_valid_document(self):
        roster = build_roster(_document())

        assert set(roster.categories) == {"coding", "support"}
        assert roster.entities[0].name == "Acme AI"
        assert roster.warnings == ()

    def test_allocation_sum_violation_warns(self):
        document = _document(
            categories=[
                {"id": "coding", "allocation_weight": 0.6},
                {"id": "support", "allocation_weight": 0.6},
            ]
        )
        with pytest.warns(ConfigurationInvariantViolation, match="sum to 1.2000"):
            roster = build_roster(document)

        assert len(roster.warnings) == 1

    def test_undefined_category_warns_but_keeps_entity(self):
        document = _document(entities=[_entity_raw(), _entity_raw(name="Ghost", category="robotics")])
        with pytest.warns(ConfigurationInvariantViolation, match="robotics"):
            roster = build_roster(document)

        assert [e.name for e in roster.entities] == ["Acme AI", "Ghost"]

    def test_category_weight_out_of_range_rejected(self):
        document = _document(categories=[{"id": "coding", "allocation_weight": 0}])
        with pytest.raises(ConfigurationError):
            build_roster(document)

    def test_default_inflection_date(self):
        document = _document()
        del document["inflection_date"]
        assert build_roster(document).inflection_date == date(2022, 11, 30)


class TestLoadRoster:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_roster(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_roster(path)

    def test_custom_path(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text(json.dumps(_document()))
        assert len(load_roster(path).entities) == 1
