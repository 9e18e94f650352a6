"""Exceptions raised by schemamodels."""

from typing import Optional


class SchemaModelsError(Exception):
    """Base class for all schemamodels errors."""

    pass


class ConfigurationError(SchemaModelsError):
    """Raised when a factory, schema or base type is set up incorrectly."""

    pass


class UnresolvedReferenceError(ConfigurationError):
    """Raised when a schema id cannot be found locally or through the fetcher."""

    def __init__(self, schema_id: Optional[str], message: Optional[str] = None):
        self.schema_id = schema_id
        super().__init__(message or f"Cannot find schema '{schema_id}'")


class UnsupportedOperationError(SchemaModelsError, NotImplementedError):
    """Raised by operations that value collections deliberately do not support."""

    pass
