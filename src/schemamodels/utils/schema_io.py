"""Utilities for loading and saving schema documents from/to JSON files."""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union
from schemamodels.config.logging import get_logger

logger = get_logger(__name__)

SchemaDocument = Dict[str, Any]


def load_schema_from_json(schema_path: Path) -> SchemaDocument:
    """
    Load a raw schema document from a JSON file.

    Args:
        schema_path: Path to the JSON file

    Returns:
        The parsed schema document

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is empty, corrupted or not a JSON object
    """
    schema_path = Path(schema_path)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    file_content = schema_path.read_text(encoding="utf-8").strip()
    if not file_content:
        raise ValueError(
            f"Schema file is empty or corrupted: {schema_path}. "
            f"The file exists but contains no valid JSON data."
        )

    try:
        document = json.loads(file_content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to load schema from {schema_path}: {e}") from e

    if not isinstance(document, dict):
        raise ValueError(
            f"Schema file {schema_path} must contain a JSON object, "
            f"got {type(document).__name__}"
        )
    return document


def save_schema_to_json(schema: SchemaDocument, schema_path: Path) -> None:
    """
    Save a raw schema document to a JSON file.

    Note:
        Creates parent directories if they don't exist. Resolved schemas may
        contain reference cycles and cannot be saved; save the raw document.
    """
    schema_path = Path(schema_path)
    schema_path.parent.mkdir(parents=True, exist_ok=True)
    schema_path.write_text(json.dumps(schema, indent=2), encoding="utf-8")


class DirectorySchemaFetcher:
    """
    Schema lookup backed by a directory of JSON files.

    A schema id such as ``/tests/person`` maps to ``<root>/tests/person.json``.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, schema_id: str) -> Path:
        relative = schema_id.split("#", 1)[0].strip("/")
        if not relative.endswith(".json"):
            relative = f"{relative}.json"
        return self.root / relative

    def __call__(self, schema_id: str) -> Optional[SchemaDocument]:
        path = self.path_for(schema_id)
        if not path.is_file():
            return None
        logger.debug(f"Loading schema '{schema_id}' from {path}")
        return load_schema_from_json(path)
