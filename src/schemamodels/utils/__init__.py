"""Utility functions for common operations."""

from .json_pointer import JSONPointer, resolve_pointer, set_pointer
from .schema_io import DirectorySchemaFetcher, load_schema_from_json, save_schema_to_json

__all__ = [
    "JSONPointer",
    "resolve_pointer",
    "set_pointer",
    "DirectorySchemaFetcher",
    "load_schema_from_json",
    "save_schema_to_json",
]
