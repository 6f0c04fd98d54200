"""
Tests for exporting rows to JSON files
"""

import json
from pathlib import Path

import pytest

from dbx.core import export
from dbx.core.errors import ExportError
from dbx.core.export import dump_json, export_filename, export_rows


class TestExport:
    def test_filename(self):
        assert export_filename(now=1700000000.7) == "dbx_export_1700000000.json"
        assert export_filename("mine", now=5) == "mine_5.json"

    def test_writes_pretty_json(self, tmp_path, sample_data):
        path = export_rows(sample_data, directory=tmp_path, now=1700000000)

        assert path == tmp_path / "dbx_export_1700000000.json"
        text = path.read_text()
        assert json.loads(text) == sample_data
        assert '\n  {\n    "name": "Alice"' in text

    def test_nan_becomes_null(self, tmp_path):
        path = export_rows([{"v": float("nan"), "w": [float("inf")]}], directory=tmp_path, now=1)
        assert json.loads(path.read_text()) == [{"v": None, "w": [None]}]

    def test_defaults_to_working_directory(self, tmp_path, monkeypatch, sample_data):
        monkeypatch.chdir(tmp_path)
        path = export_rows(sample_data, now=42)
        assert path.resolve() == (tmp_path / "dbx_export_42.json").resolve()

    def test_unserializable_rows(self, tmp_path):
        with pytest.raises(ExportError, match="serialize"):
            export_rows([{"v": object()}], directory=tmp_path)

    def test_write_failure(self, tmp_path, sample_data):
        with pytest.raises(ExportError):
            export_rows(sample_data, directory=tmp_path / "missing")


class TestDumpJson:
    """JSON serialization shared by export and the CLI formatter"""

    def test_pretty_by_default(self):
        assert dump_json({"a": [1]}) == '{\n  "a": [\n    1\n  ]\n}'

    def test_compact(self):
        assert dump_json({"a": 1, "b": "é"}, compact=True) == '{"a":1,"b":"é"}'

    def test_non_finite_floats_become_null(self):
        assert dump_json([float("-inf"), {"x": float("nan")}], compact=True) == '[null,{"x":null}]'

    def test_core_does_not_depend_on_cli(self):
        """Export must work without the CLI layer"""
        source = Path(export.__file__).read_text(encoding="utf-8")
        assert "dbx.cli" not in source
