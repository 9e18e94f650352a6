"""Runtime model and collection types derived from JSON Schema documents."""

__version__ = "0.1.0"

from .errors import (
    ConfigurationError,
    SchemaModelsError,
    UnresolvedReferenceError,
    UnsupportedOperationError,
)
from .factory import CollectionType, IdentityMap, ModelType, SchemaFactory, TypeDescriptor
from .runtime import (
    InstanceOptions,
    SchemaCollection,
    SchemaModel,
    SchemaValueCollection,
    ValidationErrors,
    ValidationIndex,
    ValidationIssue,
)
from .schema import SchemaResolver, extend_schema
from .utils import DirectorySchemaFetcher, JSONPointer, load_schema_from_json, save_schema_to_json

__all__ = [
    "ConfigurationError",
    "SchemaModelsError",
    "UnresolvedReferenceError",
    "UnsupportedOperationError",
    "CollectionType",
    "IdentityMap",
    "ModelType",
    "SchemaFactory",
    "TypeDescriptor",
    "InstanceOptions",
    "SchemaCollection",
    "SchemaModel",
    "SchemaValueCollection",
    "ValidationErrors",
    "ValidationIndex",
    "ValidationIssue",
    "SchemaResolver",
    "extend_schema",
    "DirectorySchemaFetcher",
    "JSONPointer",
    "load_schema_from_json",
    "save_schema_to_json",
]
