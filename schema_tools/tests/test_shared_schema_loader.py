import json

import pytest

from schema_tools.shared.errors import SchemaError
from schema_tools.shared.schema_loader import collect_document_paths, load_document


class TestLoadDocument:
    def test_load_json(self, tmp_path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps([{"version": 1}]))
        assert load_document(path) == [{"version": 1}]

    def test_load_yaml_list(self, tmp_path):
        path = tmp_path / "m.yml"
        path.write_text("- version: 1\n- version: 2\n")
        assert load_document(path) == [{"version": 1}, {"version": 2}]

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("key: [unclosed\n")
        with pytest.raises(SchemaError, match="Invalid YAML"):
            load_document(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(SchemaError, match="Invalid JSON"):
            load_document(path)

    def test_scalar_root(self, tmp_path):
        path = tmp_path / "scalar.yaml"
        path.write_text("just a string\n")
        with pytest.raises(SchemaError, match="mapping or a list"):
            load_document(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaError, match="Failed to read file"):
            load_document(tmp_path / "missing.yaml")


class TestCollectDocumentPaths:
    def test_directory_sorted(self, tmp_path):
        (tmp_path / "2_b.yaml").write_text("a: 1\n")
        (tmp_path / "1_a.json").write_text("{}")
        (tmp_path / "notes.txt").write_text("ignored")

        paths = collect_document_paths([tmp_path])
        assert [p.name for p in paths] == ["1_a.json", "2_b.yaml"]

    def test_deduplicates(self, tmp_path):
        path = tmp_path / "m.yaml"
        path.write_text("a: 1\n")

        assert collect_document_paths([path, tmp_path]) == [path.resolve()]

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            collect_document_paths([tmp_path / "nope"])
