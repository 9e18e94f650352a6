"""Schema registry, type descriptors and the instance identity map."""

from .builder import SchemaFactory
from .descriptors import CollectionType, ModelType, TypeDescriptor
from .identity_map import IdentityMap, IdentityResult

__all__ = [
    "SchemaFactory",
    "CollectionType",
    "ModelType",
    "TypeDescriptor",
    "IdentityMap",
    "IdentityResult",
]
