"""Type descriptors derived from resolved schema nodes."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional
from schemamodels.runtime.collection import SchemaCollection
from schemamodels.runtime.model import SchemaModel
from schemamodels.runtime.options import OptionsLike

if TYPE_CHECKING:
    from .builder import SchemaFactory


@dataclass(eq=False)
class TypeDescriptor:
    """
    Everything needed to build instances for one schema node.

    A descriptor is filled in once by the factory (relations may be added
    after it is cached, so that cyclic schemas terminate) and left
    untouched afterwards.
    """

    schema: Dict[str, Any]
    type_name: str
    base: type
    factory: "SchemaFactory" = field(repr=False)

    @property
    def schema_id(self) -> Optional[str]:
        return self.schema.get("id")

    def accepts(self, value: Any) -> bool:
        """True when ``value`` can be stored as-is for a relation of this type."""
        raise NotImplementedError

    def create(self, data: Any = None, options: OptionsLike = None) -> Any:
        raise NotImplementedError

    def __call__(self, data: Any = None, options: OptionsLike = None) -> Any:
        return self.create(data, options)


@dataclass(eq=False)
class ModelType(TypeDescriptor):
    """Descriptor of an object schema."""

    defaults: Dict[str, Any] = field(default_factory=dict)
    relations: Dict[str, TypeDescriptor] = field(default_factory=dict, repr=False)

    def accepts(self, value: Any) -> bool:
        return isinstance(value, SchemaModel)

    def is_instance(self, value: Any) -> bool:
        return isinstance(value, SchemaModel) and value.descriptor is self

    def create(self, data: Any = None, options: OptionsLike = None) -> SchemaModel:
        """Build an instance, reusing the identity-mapped one for a known natural id."""
        return self.factory.instantiate(self, data, options)


@dataclass(eq=False)
class CollectionType(TypeDescriptor):
    """
    Descriptor of an array schema.

    ``model`` is the item ModelType for collections of objects and None for
    collections of primitive values.
    """

    model: Optional[ModelType] = None

    @property
    def is_value_collection(self) -> bool:
        return self.model is None

    @property
    def relations(self) -> Dict[str, TypeDescriptor]:
        return {"items": self.model} if self.model is not None else {}

    def accepts(self, value: Any) -> bool:
        return isinstance(value, SchemaCollection)

    def is_instance(self, value: Any) -> bool:
        return isinstance(value, SchemaCollection) and value.descriptor is self

    def create(self, data: Any = None, options: OptionsLike = None) -> SchemaCollection:
        return self.base(self, data, options)
