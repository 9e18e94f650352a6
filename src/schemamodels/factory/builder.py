"""Schema registry and type builder."""

import re
import threading
from typing import Any, Callable, Dict, Mapping, Optional, Union
from schemamodels.config.logging import get_logger
from schemamodels.config.settings import get_settings
from schemamodels.errors import ConfigurationError, UnresolvedReferenceError
from schemamodels.runtime.collection import SchemaCollection, SchemaValueCollection
from schemamodels.runtime.model import SchemaModel
from schemamodels.runtime.options import OptionsLike, as_options
from schemamodels.schema.resolver import SchemaResolver, remove_trailing_hash
from schemamodels.utils.schema_io import DirectorySchemaFetcher
from .descriptors import CollectionType, ModelType, TypeDescriptor
from .identity_map import IdentityMap

logger = get_logger(__name__)

SchemaNode = Dict[str, Any]
SchemaFetcher = Callable[[str], Optional[SchemaNode]]

VALUE_ITEM_TYPES = ("string", "number", "integer", "boolean")
UNSUPPORTED_ITEM_TYPES = ("array", "any", "null")

# Capability markers a base type must carry, per kind of type built on it
MARKERS = {
    "model": "is_schema_model",
    "collection": "is_schema_collection",
    "value_collection": "is_schema_value_collection",
}


def _has_marker(base: Any, kind: str) -> bool:
    return isinstance(base, type) and getattr(base, MARKERS[kind], False) is True


def _clean_title(title: Optional[str]) -> Optional[str]:
    if not title:
        return None
    return re.sub(r"\W", "", title) or None


class SchemaFactory:
    """
    Registers schemas and derives model and collection types from them.

    All caches (registered schemas, resolved schemas, derived types and the
    identity map of live instances) belong to the factory; ``reset()``
    clears them together.
    """

    def __init__(
        self,
        model: Optional[type] = None,
        collection: Optional[type] = None,
        value_collection: Optional[type] = None,
        fetch: Optional[SchemaFetcher] = None,
    ):
        """
        Args:
            model: Default base for model types (SchemaModel)
            collection: Default base for model collections (SchemaCollection)
            value_collection: Default base for value collections (SchemaValueCollection)
            fetch: Called with a schema id that is not registered; returns the
                raw schema document or None. Defaults to a directory lookup in
                Settings.schema_dir when that is configured.

        Raises:
            ConfigurationError: If a base type lacks its capability marker
        """
        self.base_model = self._check_base(model or SchemaModel, "model")
        self.base_collection = self._check_base(collection or SchemaCollection, "collection")
        self.base_value_collection = self._check_base(
            value_collection or SchemaValueCollection, "value_collection"
        )

        if fetch is None:
            schema_dir = get_settings().schema_dir
            fetch = DirectorySchemaFetcher(schema_dir) if schema_dir else None
        self._fetch = fetch

        self.registered_schemas: Dict[str, SchemaNode] = {}
        self.registered_types: Dict[str, type] = {}
        self.type_cache: Dict[str, TypeDescriptor] = {}
        self.identity_map = IdentityMap()
        self.resolver = SchemaResolver(self.get_schema)
        self._lock = threading.RLock()

    @staticmethod
    def _check_base(base: Any, kind: str) -> type:
        if not _has_marker(base, kind):
            logger.error(f"{base!r} cannot be used as a {kind} base: missing {MARKERS[kind]}")
            raise ConfigurationError(f"Base type {base!r} must set {MARKERS[kind]} = True")
        return base

    def register_schema(self, schema: Union[str, SchemaNode], type_: Optional[type] = None) -> None:
        """
        Register a schema document and/or an override base type under its id.

        Registering a different document or type for an id drops the type
        already derived for that id.

        Raises:
            ConfigurationError: If no id can be determined or ``type_`` is not
                a schema model or collection type
        """
        if isinstance(schema, str):
            schema_id, document = schema, None
        else:
            schema_id, document = (schema or {}).get("id"), schema
        schema_id = remove_trailing_hash(schema_id)
        if not schema_id:
            logger.error("Attempted to register a schema without an id")
            raise ConfigurationError("Cannot register a schema without an id")

        with self._lock:
            if type_ is not None and self.registered_types.get(schema_id) is not type_:
                if not any(_has_marker(type_, kind) for kind in MARKERS):
                    logger.error(f"Cannot register {type_!r} for '{schema_id}': not a schema type")
                    raise ConfigurationError(f"{type_!r} is not a schema model or collection type")
                self.registered_types[schema_id] = type_
                self.type_cache.pop(schema_id, None)

            if document is not None and self.registered_schemas.get(schema_id) is not document:
                self.registered_schemas[schema_id] = document
                self.resolver.invalidate(schema_id)
                self.type_cache.pop(schema_id, None)

        logger.debug(f"Registered schema '{schema_id}'")

    def unregister_schema(self, schema_id: str) -> None:
        schema_id = remove_trailing_hash(schema_id)
        with self._lock:
            self.registered_schemas.pop(schema_id, None)
            self.registered_types.pop(schema_id, None)
            self.type_cache.pop(schema_id, None)
            self.resolver.invalidate(schema_id)
        logger.debug(f"Unregistered schema '{schema_id}'")

    def reset(self) -> None:
        """Forget every registered schema, derived type and live instance."""
        with self._lock:
            self.registered_schemas.clear()
            self.registered_types.clear()
            self.type_cache.clear()
            self.identity_map.clear()
            self.resolver.clear()
        logger.debug("Factory reset")

    def fetch(self, schema_id: str) -> Optional[SchemaNode]:
        """Obtain a schema that is not registered; None when unavailable."""
        if self._fetch is None:
            return None
        return self._fetch(schema_id)

    def get_schema(self, schema_id: str) -> SchemaNode:
        """
        Get a raw (or already resolved) schema by id, fetching it if needed.

        Raises:
            UnresolvedReferenceError: If the schema is neither registered nor fetchable
        """
        schema_id = remove_trailing_hash(schema_id.split("#", 1)[0])
        schema = self.registered_schemas.get(schema_id)
        if schema is not None:
            return schema

        schema = self.fetch(schema_id)
        if schema is None:
            logger.error(f"Cannot find schema '{schema_id}'")
            raise UnresolvedReferenceError(schema_id)
        if not schema.get("id"):
            schema["id"] = schema_id
        self.registered_schemas[schema_id] = schema
        return schema

    def resolve_schema(self, schema: SchemaNode) -> SchemaNode:
        """Resolve every ``$ref`` and ``extends`` in ``schema`` in place."""
        with self._lock:
            return self.resolver.resolve(schema)

    def create_type(self, schema: Union[str, SchemaNode], type_: Optional[type] = None) -> TypeDescriptor:
        """
        Derive (or reuse) the type descriptor for a schema.

        Args:
            schema: Schema document or registered schema id
            type_: Override base type

        Returns:
            A CollectionType for array schemas, a ModelType otherwise
        """
        with self._lock:
            if isinstance(schema, str):
                if type_ is not None:
                    self.register_schema(schema, type_)
                schema = self.get_schema(schema)
            elif schema.get("id"):
                self.register_schema(schema, type_)

            schema = self.resolve_schema(schema)
            if schema.get("type") == "array":
                return self._create_collection(schema, type_)
            return self._create_model(schema, type_)

    def create_instance(
        self,
        schema: Union[str, SchemaNode],
        type_: Any = None,
        attributes: Any = None,
        options: OptionsLike = None,
    ) -> Any:
        """
        Create an instance of the type derived from ``schema``.

        ``type_`` may be omitted: ``create_instance(schema, attributes, options)``
        is accepted as well.
        """
        if type_ is not None and not isinstance(type_, type):
            type_, attributes, options = None, type_, attributes
        descriptor = self.create_type(schema, type_)
        return descriptor.create(attributes, options)

    def instantiate(self, descriptor: ModelType, attributes: Any = None, options: OptionsLike = None) -> SchemaModel:
        """
        Build a model for ``descriptor``, consulting the identity map.

        When the attributes carry a natural id and the schema has an id, the
        live instance registered for that pair is returned instead of a new
        one, unless ``identity_map=False`` is passed. A new instance is
        registered before its relations are built, so nested data referring
        back to the same id gets the same instance.
        """
        options = as_options(options)
        base = descriptor.base
        instance = base.__new__(base)
        if options.parse_input:
            attributes = instance.parse(attributes, options)
            options = options.merged(parse=False)

        natural_id = None
        if isinstance(attributes, Mapping):
            natural_id = attributes.get(base.natural_id_attribute())
        schema_id = descriptor.schema_id
        if natural_id is None or not schema_id:
            instance.__init__(descriptor, attributes, options)
            return instance

        with self._lock:
            result = self.identity_map.get_or_create(
                natural_id, schema_id, lambda: instance, bypass=not options.identity_map
            )
            if not result.created:
                return result.instance
            try:
                instance.__init__(descriptor, attributes, options)
            except Exception:
                self.identity_map.evict(instance)
                raise
        return instance

    def _create_model(self, schema: SchemaNode, base: Optional[type] = None) -> ModelType:
        schema_id = remove_trailing_hash(schema.get("id"))
        if schema_id and schema_id in self.type_cache:
            return self.type_cache[schema_id]

        if base is None and schema_id:
            base = self.registered_types.get(schema_id)
        base = self._check_base(base or self.base_model, "model")
        type_name = f"{_clean_title(schema.get('title')) or 'Unknown'}SchemaModel"

        descriptor = ModelType(schema=schema, type_name=type_name, base=base, factory=self)
        # Cached before relations are built so that cyclic schemas terminate
        if schema_id:
            self.type_cache[schema_id] = descriptor

        for key, schema_property in (schema.get("properties") or {}).items():
            if not isinstance(schema_property, dict):
                continue
            if "default" in schema_property:
                descriptor.defaults[key] = schema_property["default"]
            property_type = schema_property.get("type")
            if property_type == "object":
                descriptor.relations[key] = self._create_model(schema_property)
            elif property_type == "array":
                descriptor.relations[key] = self._create_collection(schema_property)

        logger.debug(f"Created type {type_name} for schema '{schema_id}'")
        return descriptor

    def _create_collection(self, schema: SchemaNode, base: Optional[type] = None) -> CollectionType:
        schema_id = remove_trailing_hash(schema.get("id"))
        if schema_id and schema_id in self.type_cache:
            return self.type_cache[schema_id]

        items = schema.get("items")
        if not isinstance(items, dict):
            logger.error(f"Array schema '{schema_id}' has no single items schema")
            raise ConfigurationError("Array schemas require an items schema")

        item_type = items.get("type")
        if item_type in UNSUPPORTED_ITEM_TYPES:
            logger.error(f"Unsupported items type '{item_type}' in schema '{schema_id}'")
            raise ConfigurationError(f"Unsupported items type: {item_type}")
        if item_type != "object" and item_type not in VALUE_ITEM_TYPES:
            logger.error(f"Unknown items type '{item_type}' in schema '{schema_id}'")
            raise ConfigurationError(f"Unknown items type: {item_type}")

        title = _clean_title(schema.get("title"))
        registered = self.registered_types.get(schema_id) if schema_id else None
        if item_type == "object":
            base = self._check_base(base or registered or self.base_collection, "collection")
        else:
            base = self._check_base(registered or self.base_value_collection, "value_collection")

        descriptor = CollectionType(schema=schema, type_name="", base=base, factory=self)
        if schema_id:
            self.type_cache[schema_id] = descriptor

        if item_type == "object":
            descriptor.model = self._create_model(items)
            prefix = title or descriptor.model.type_name[: -len("Model")]
        else:
            prefix = title or item_type.capitalize()
        descriptor.type_name = f"{prefix}Collection"

        logger.debug(f"Created type {descriptor.type_name} for schema '{schema_id}'")
        return descriptor
