"""Tests for schema file loading, saving and directory lookup."""

import pytest
from schemamodels import DirectorySchemaFetcher, load_schema_from_json, save_schema_to_json


def test_save_and_load(tmp_path):
    """Test that a saved document loads back unchanged."""
    schema = {"id": "/people/person", "type": "object", "properties": {"name": {"type": "string"}}}
    path = tmp_path / "nested" / "person.json"
    save_schema_to_json(schema, path)
    assert path.exists()
    assert load_schema_from_json(path) == schema


def test_load_missing_file(tmp_path):
    """Test that a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_schema_from_json(tmp_path / "missing.json")


@pytest.mark.parametrize("content", ["", "   \n", "{not json", "[1, 2]"])
def test_load_rejects_bad_content(tmp_path, content):
    """Test that empty, corrupted or non-object files are rejected."""
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_schema_from_json(path)


def test_fetcher_paths(tmp_path):
    """Test the mapping from schema ids to files."""
    fetcher = DirectorySchemaFetcher(tmp_path)
    assert fetcher.path_for("/people/person") == tmp_path / "people" / "person.json"
    assert fetcher.path_for("/people/person#/properties/name") == tmp_path / "people" / "person.json"
    assert fetcher.path_for("people/person.json") == tmp_path / "people" / "person.json"


def test_fetcher_loads_documents(tmp_path):
    """Test that the fetcher returns stored documents and None for unknown ids."""
    save_schema_to_json({"type": "object"}, tmp_path / "people" / "person.json")
    fetcher = DirectorySchemaFetcher(str(tmp_path))
    assert fetcher("/people/person") == {"type": "object"}
    assert fetcher("/people/nobody") is None
