"""
Tests for cli.py - Command line entry point.
"""

import json
from unittest.mock import patch
from geofuse.cli import main
from geofuse.support.settings import dump_settings
from geofuse.core.models import MergeConfig


def write_collection(path, *rows):
    features = [
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": [1.123456789, 2.0]}, "properties": props}
        for props in rows
    ]
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}), encoding="utf-8")
    return str(path)


def pair(tmp_path):
    a = write_collection(
        tmp_path / "a.geojson",
        {"iso_a3": "FRA", "name": "France", "pop": 1},
        {"iso_a3": "ISL", "name": "Iceland", "pop": 2},
    )
    b = write_collection(
        tmp_path / "b.geojson",
        {"iso_a3": "FRA", "name": "France", "name_de": "Frankreich"},
        {"iso_a3": "NOR", "name": "Norway", "name_de": "Norwegen"},
    )
    return a, b


class TestAnalyze:
    def test_prints_json(self, tmp_path, capsys):
        a, b = pair(tmp_path)
        assert main(["analyze", a, b]) == 0
        out = capsys.readouterr().out
        data = json.loads(out[out.index("{"):])
        assert data["a"]["fileName"] == "a.geojson"
        assert data["idProperty"] == "iso_a3"
        assert data["comparison"]["recognized"] == {"common": 1, "unique_a": 1, "unique_b": 1}


class TestFuse:
    """Tests for the fuse command."""

    def test_writes_output(self, tmp_path):
        a, b = pair(tmp_path)
        out = tmp_path / "out.geojson"
        assert main(["fuse", a, b, "--precision", "2", "--out", str(out)]) == 0
        fused = json.loads(out.read_text(encoding="utf-8"))
        assert fused["name"] == "Fused GeoJSON - a & b"
        assert len(fused["features"]) == 3
        assert fused["features"][0]["geometry"]["coordinates"] == [1.12, 2.0]

    def test_compact_output(self, tmp_path):
        a, b = pair(tmp_path)
        out = tmp_path / "out.geojson"
        assert main(["fuse", a, b, "--compact", "--out", str(out)]) == 0
        text = out.read_text(encoding="utf-8")
        assert text.count("\n") == 1
        assert len(json.loads(text)["features"]) == 3

    def test_timestamped_name(self, tmp_path):
        a, b = pair(tmp_path)
        out_dir = tmp_path / "out"
        assert main(["fuse", a, b, "--out-dir", str(out_dir)]) == 0
        written = list(out_dir.glob("merged_*.geojson"))
        assert len(written) == 1

    def test_with_settings(self, tmp_path):
        a, b = pair(tmp_path)
        settings = tmp_path / "settings.json"
        payload = dump_settings(MergeConfig(), {"Iceland": "discard"}, {})
        settings.write_text(json.dumps(payload), encoding="utf-8")
        out = tmp_path / "out.geojson"
        assert main(["fuse", a, b, "--settings", str(settings), "--out", str(out)]) == 0
        fused = json.loads(out.read_text(encoding="utf-8"))
        assert {f["properties"]["iso_a3"] for f in fused["features"]} == {"FRA", "NOR"}

    def test_invalid_input(self, tmp_path, capsys):
        a, _ = pair(tmp_path)
        bad = tmp_path / "bad.geojson"
        bad.write_text("[]", encoding="utf-8")
        assert main(["fuse", a, str(bad)]) == 1
        assert "ERROR | FUSION FAILED" in capsys.readouterr().out

    def test_sentinel_id(self, tmp_path, capsys):
        a, b = pair(tmp_path)
        assert main(["fuse", a, b, "--id-property", "none_found", "--out", str(tmp_path / "o.geojson")]) == 1
        assert "WARN | FUSE SKIPPED" in capsys.readouterr().out
        assert not (tmp_path / "o.geojson").exists()


class TestTranslations:
    @patch('geofuse.cli.fetch_cldr_dictionary')
    def test_cldr_and_save(self, mock_fetch, tmp_path, capsys):
        a, b = pair(tmp_path)
        mock_fetch.return_value = {"ISL": {"en": "Iceland", "de": "Island"}}
        assert main(["translations", a, b, "--cldr", "--save-settings", str(tmp_path)]) == 0
        out = capsys.readouterr().out
        assert "ISL\trec\tIceland\tname_de=Island" in out
        saved = list(tmp_path.glob("geojson_fusion_settings_*.json"))
        assert len(saved) == 1
        data = json.loads(saved[0].read_text(encoding="utf-8"))
        assert data["manualTranslations"] == {"ISL": {"name_de": "Island"}}
