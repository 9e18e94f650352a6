"""Schema resolution and constraint predicates."""

from .resolver import SchemaResolver, anonymous_schema_id, remove_trailing_hash
from .validators import VALIDATORS, extend_schema, get_validator

__all__ = [
    "SchemaResolver",
    "anonymous_schema_id",
    "remove_trailing_hash",
    "VALIDATORS",
    "extend_schema",
    "get_validator",
]
