"""
Tests for analyze.py - Dataset analysis.

These tests verify:
- Name and sovereignty key detection (preference list and fallback scan)
- Language detection from translation keys
- Potential id key detection and its fallbacks
- Country/territory classification through the analyzer
- Inputs are never mutated
"""

import copy
from geofuse.core.constants import NO_ID_SENTINEL
from geofuse.domain.analyze import analyze


def feature(props, geometry=None):
    return {
        "type": "Feature",
        "geometry": geometry if geometry is not None else {"type": "Point", "coordinates": [1.5, 2.25]},
        "properties": props,
    }


def collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


def natural_earth_like():
    return collection(
        feature({"ADMIN": "France", "SOVEREIGNT": "France", "ISO_A3": "FRA", "NAME_DE": "Frankreich", "POP_EST": 67}),
        feature({"ADMIN": "Guadeloupe", "SOVEREIGNT": "France", "ISO_A3": "GLP", "NAME_DE": "Guadeloupe", "POP_EST": 0.4}),
        feature({"ADMIN": "Iceland", "SOVEREIGNT": "Iceland", "ISO_A3": "ISL", "NAME_DE": "Island", "POP_EST": 0.37}),
        feature({"ADMIN": "South Korea", "SOVEREIGNT": "Korea", "ISO_A3": "KOR", "NAME_DE": "Südkorea", "POP_EST": 51}),
        feature({"ADMIN": "Norway", "SOVEREIGNT": "Norway", "ISO_A3": "NOR", "NAME_DE": "Norwegen", "POP_EST": 5.4}),
    )


class TestAnalyze:
    """Tests for the analyzer over a Natural Earth style dataset."""

    def test_basic_counts(self):
        result = analyze("ne.geojson", natural_earth_like())
        assert result.file_name == "ne.geojson"
        assert result.num_features == 5
        assert result.geometry_precision_score == 5
        assert result.max_coordinate_precision == 2

    def test_keys_are_lowercased(self):
        result = analyze("ne.geojson", natural_earth_like())
        assert result.common_properties == ["admin", "iso_a3", "name_de", "pop_est", "sovereignt"]

    def test_name_and_sovereignty_keys(self):
        result = analyze("ne.geojson", natural_earth_like())
        assert result.country_name_property == "admin"
        assert result.sovereignty_property_key == "sovereignt"

    def test_languages(self):
        result = analyze("ne.geojson", natural_earth_like())
        assert result.languages == ["DE"]

    def test_potential_id_keys_preferred_first(self):
        result = analyze("ne.geojson", natural_earth_like())
        assert result.potential_id_keys == ["iso_a3", "admin", "name_de", "pop_est", "sovereignt"]

    def test_repeated_values_disqualify_id_key(self):
        """Sample uniqueness must exceed 60% of min(features, 5)."""
        data = natural_earth_like()
        for f in data["features"]:
            f["properties"]["CONTINENT"] = "Europe" if f["properties"]["ISO_A3"] != "KOR" else "Asia"
        result = analyze("ne.geojson", data)
        assert "continent" in result.common_properties
        assert "continent" not in result.potential_id_keys

    def test_classification(self):
        result = analyze("ne.geojson", natural_earth_like())
        details = result.details_by_name()
        assert details["France"].is_dependency is False
        assert details["Guadeloupe"].is_dependency is True
        assert details["Guadeloupe"].sovereign_state == "France"
        assert details["South Korea"].is_dependency is False
        assert [d.name for d in result.country_details] == sorted(details, key=str.casefold)

    def test_does_not_mutate(self):
        data = natural_earth_like()
        before = copy.deepcopy(data)
        analyze("ne.geojson", data)
        assert data == before


class TestKeyDetection:
    """Tests for the fallback paths."""

    def test_name_fallback_scan(self):
        """Without any preferred key, a string key covering most features is used."""
        data = collection(
            feature({"land": "France", "code": 1}),
            feature({"land": "Spain", "code": 2}),
            feature({"land": "Italy", "code": 3}),
        )
        result = analyze("x", data)
        assert result.country_name_property == "land"
        assert result.sovereignty_property_key is None
        assert all(not d.is_dependency for d in result.country_details)

    def test_name_requires_string_on_first_feature(self):
        data = collection(
            feature({"name": 12, "label": "A"}),
            feature({"name": "Spain", "label": "B"}),
        )
        result = analyze("x", data)
        assert result.country_name_property == "label"

    def test_id_fallback_when_values_repeat(self):
        """Keys with repeated sample values do not qualify; first five keys are offered."""
        data = collection(*[feature({"kind": "x", "flag": True}) for _ in range(5)])
        result = analyze("x", data)
        assert result.potential_id_keys == ["flag", "kind"]

    def test_id_sentinel_when_no_properties(self):
        data = collection(feature({}), feature(None))
        result = analyze("x", data)
        assert result.potential_id_keys == [NO_ID_SENTINEL]
        assert result.country_name_property is None
        assert result.country_details == []

    def test_empty_collection(self):
        result = analyze("empty", collection())
        assert result.num_features == 0
        assert result.potential_id_keys == [NO_ID_SENTINEL]
