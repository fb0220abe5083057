"""
Tests for cldr_api.py - CLDR territory names (mocked HTTP).

These tests verify:
- Per-language fetch and payload extraction
- Failures degrade to empty data instead of raising
- Dictionary building with English fallback
"""

import requests
from unittest.mock import Mock, patch
from geofuse.adapters.cldr_api import (
    fetch_territory_names,
    build_dictionary,
    fetch_cldr_dictionary,
    CLDR_TERRITORIES_URL,
)


def cldr_payload(lang, territories):
    return {"main": {lang: {"localeDisplayNames": {"territories": territories}}}}


def ok_response(payload):
    response = Mock()
    response.status_code = 200
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


class TestFetchTerritoryNames:
    """Tests for a single locale fetch."""

    @patch('geofuse.adapters.cldr_api.requests.get')
    def test_success(self, mock_get):
        mock_get.return_value = ok_response(cldr_payload("de", {"NO": "Norwegen", "AD": "Andorra"}))
        names = fetch_territory_names("de")
        assert names == {"NO": "Norwegen", "AD": "Andorra"}
        assert mock_get.call_args[0][0] == CLDR_TERRITORIES_URL.format(lang="de")

    @patch('geofuse.adapters.cldr_api.requests.get')
    def test_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("offline")
        assert fetch_territory_names("de") == {}

    @patch('geofuse.adapters.cldr_api.requests.get')
    def test_http_error(self, mock_get):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        mock_get.return_value = response
        assert fetch_territory_names("xx") == {}

    @patch('geofuse.adapters.cldr_api.requests.get')
    def test_unexpected_payload(self, mock_get):
        mock_get.return_value = ok_response({"main": {}})
        assert fetch_territory_names("de") == {}


class TestBuildDictionary:
    def test_keys_and_fallback(self):
        names = {
            "en": {"NO": "Norway", "AD": "Andorra"},
            "de": {"NO": "Norwegen"},
        }
        out = build_dictionary(names, langs=("en", "de"), alpha2_to_alpha3={"NO": "NOR", "AD": "AND", "VA": "VAT"})
        assert out["NOR"] == {"en": "Norway", "de": "Norwegen"}
        assert out["norway"] is out["NOR"]
        assert out["AND"]["de"] == "Andorra"
        assert "VAT" not in out


class TestFetchDictionary:
    @patch('geofuse.adapters.cldr_api.requests.get')
    def test_one_failed_language(self, mock_get):
        """A failing locale falls back to English names."""
        def fake_get(url, headers=None, timeout=None):
            if "/fr/" in url:
                raise requests.Timeout("slow")
            if "/en/" in url:
                return ok_response(cldr_payload("en", {"NO": "Norway"}))
            return ok_response(cldr_payload("de", {"NO": "Norwegen"}))

        mock_get.side_effect = fake_get
        out = fetch_cldr_dictionary(langs=("en", "de", "fr"))
        assert out["NOR"] == {"en": "Norway", "de": "Norwegen", "fr": "Norway"}
