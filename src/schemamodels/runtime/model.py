"""Schema-backed model: relation wrapping, lazy relations, validation and serialization."""

import copy
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional
from urllib.parse import quote
from schemamodels.config.logging import get_logger
from schemamodels.errors import ConfigurationError
from schemamodels.schema import validators
from .observable import ObservableCollection, ObservableModel
from .options import InstanceOptions, OptionsLike, as_options
from .validation import ValidationIndex, ValidationIssue

if TYPE_CHECKING:
    from schemamodels.factory.descriptors import ModelType

logger = get_logger(__name__)

VALUE_TYPES = ("string", "number", "integer", "boolean")
KNOWN_TYPES = VALUE_TYPES + ("object", "array", "null", "any")

TYPE_MESSAGES = {
    "object": "%(title) should be a model",
    "array": "%(title) should be a collection",
    "string": "%(title) should be a string",
    "number": "%(title) should be a number",
    "integer": "%(title) should be a integer",
    "boolean": "%(title) should be a boolean",
    "null": "%(title) should be null",
}


class SchemaModel(ObservableModel):
    """
    Model whose attributes are described by an object schema.

    Instances are normally created through a ``ModelType`` (``descriptor.create``
    or ``factory.create_instance``), which applies the identity map. Calling the
    class directly builds a fresh instance without consulting the map.
    """

    is_schema_model = True

    # Base URL used by url() when the schema declares no self link
    url_root: Optional[str] = None

    def __init__(
        self,
        descriptor: "ModelType",
        attributes: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
    ):
        options = as_options(options)
        self.descriptor = descriptor
        self.is_disposed = False
        self._to_json_in_progress = False
        self._validation_in_progress = False
        self.validation: Optional[ValidationIndex] = None
        super().__init__(attributes, options)
        if options.validation:
            self.validation = ValidationIndex(list(self.schema_properties) or ["value"])

    @property
    def schema(self) -> Dict[str, Any]:
        return self.descriptor.schema

    @property
    def schema_id(self) -> Optional[str]:
        return self.descriptor.schema.get("id")

    @property
    def schema_relations(self) -> Dict[str, Any]:
        return self.descriptor.relations

    @property
    def schema_properties(self) -> Dict[str, Any]:
        return self.descriptor.schema.get("properties") or {}

    @property
    def type_name(self) -> str:
        return self.descriptor.type_name

    @property
    def factory(self):
        return self.descriptor.factory

    def defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self.descriptor.defaults)

    def get(self, key: str) -> Any:
        """
        Read an attribute.

        Members defined by a subclass under the same name win (zero-argument
        callables are invoked). Relations that hold nothing yet are created
        empty, stored and returned.
        """
        member = self._own_member(key)
        if member is not None:
            return member() if callable(member) else member

        value = self.attributes.get(key)
        if value is None:
            relation = self.schema_relations.get(key)
            if relation is not None:
                value = relation.create(None, {"silent": True})
                self.attributes[key] = value
        return value

    def set(self, key: Any, value: Any = None, options: OptionsLike = None) -> bool:
        """Same as ObservableModel.set, but only validates when asked to."""
        if key is None or isinstance(key, Mapping):
            attributes, options = dict(key or {}), value if options is None else options
        else:
            attributes = {key: value}
        options = as_options(options)
        # Relations are built with the caller's options before validation is forced off
        attributes = self._prepare_attributes(attributes, options)
        if not options.explicitly_sets("validate"):
            options = options.merged(validate=False)
        return super().set(attributes, None, options)

    def _own_member(self, key: str) -> Any:
        for klass in type(self).__mro__:
            if klass is SchemaModel:
                return None
            if key in vars(klass):
                return getattr(self, key)
        return None

    def _prepare_attributes(self, attributes: Dict[str, Any], options: InstanceOptions) -> Dict[str, Any]:
        relations = self.schema_relations
        if not attributes or not relations:
            return attributes

        nested_options = options.merged(silent=True)
        prepared = {}
        for name, value in attributes.items():
            relation = relations.get(name)
            if relation is not None and not relation.accepts(value):
                value = relation.create(value, nested_options)
            prepared[name] = value
        return prepared

    def validate(
        self, attributes: Optional[Mapping[str, Any]] = None, options: OptionsLike = None
    ) -> Optional[List[ValidationIssue]]:
        """
        Validate ``attributes`` (every declared property by default).

        Per-attribute issues are recorded in ``self.validation``, replacing
        whatever a previous call recorded.

        Returns:
            The issues found, or None when valid or validation is disabled
        """
        if self.validation is None or self._validation_in_progress:
            return None
        options = as_options(options)
        if attributes is None:
            attributes = {key: self.attributes.get(key) for key in self.schema_properties}

        self._validation_in_progress = True
        try:
            self.validation.clear()
            errors: List[ValidationIssue] = []
            for key, value in attributes.items():
                attribute_errors = self.validate_attribute(key, value, options)
                if attribute_errors:
                    self.validation.set_error(key, attribute_errors)
                    errors.extend(attribute_errors)
        finally:
            self._validation_in_progress = False

        if errors:
            logger.debug(f"{self.type_name} {self.cid} failed validation with {len(errors)} error(s)")
            return errors
        return None

    def validate_attribute(
        self, key: str, value: Any, options: OptionsLike = None
    ) -> Optional[List[ValidationIssue]]:
        """Check one attribute against its property schema."""
        options = as_options(options)
        schema_property = self.schema_properties.get(key)
        if not isinstance(schema_property, dict):
            return None

        title = schema_property.get("title") or key
        errors: List[ValidationIssue] = []

        def fail(rule: str, message: str, **values: Any) -> None:
            errors.append(ValidationIssue(rule=rule, message=message, values={"title": title, **values}))

        is_required = schema_property.get("required", False) is True
        if not validators.required(value, is_required):
            fail("required", "%(title) is a required field")
        # Required attributes go on to the type checks even when missing
        if value is None and not is_required:
            return None

        is_string = isinstance(value, str)
        is_boolean = isinstance(value, bool)
        is_number = validators.is_number(value)
        is_integer = is_number and validators.is_integer(value)
        is_model = isinstance(value, SchemaModel)
        is_collection = isinstance(value, ObservableCollection)

        declared_type = schema_property.get("type")
        if declared_type is not None and declared_type not in KNOWN_TYPES:
            logger.error(f"Unknown schema type '{declared_type}' for attribute '{key}'")
            raise ConfigurationError(f"Unknown schema type: {declared_type}")

        type_matches = {
            "object": is_model,
            "array": is_collection,
            "string": is_string,
            "number": is_number,
            "integer": is_integer,
            "boolean": is_boolean,
            "null": False,
        }
        if declared_type in type_matches and not type_matches[declared_type]:
            fail("type", TYPE_MESSAGES[declared_type])

        if options.deep and (is_model or is_collection) and not value.is_valid(options):
            fail("relation", "%(title) is invalid")

        if is_string:
            self._check_string(schema_property, value, fail)
        if is_number:
            self._check_number(schema_property, value, fail)

        return errors or None

    @staticmethod
    def _check_string(schema_property: Dict[str, Any], value: str, fail) -> None:
        max_length = schema_property.get("maxLength")
        if max_length is not None and not validators.max_length(value, max_length):
            fail("maxLength", "%(title) may not be longer than %(maxLength)", maxLength=max_length)
        min_length = schema_property.get("minLength")
        if min_length is not None and not validators.min_length(value, min_length):
            fail("minLength", "%(title) must be be longer than %(minLength)", minLength=min_length)
        format_name = schema_property.get("format")
        if format_name is not None and not validators.matches_format(value, format_name):
            fail("format", "%(title) does not match %(format)", format=format_name)
        pattern = schema_property.get("pattern")
        if pattern is not None and not validators.matches_pattern(value, pattern):
            fail("pattern", "%(title) is invalid")

    @staticmethod
    def _check_number(schema_property: Dict[str, Any], value: Any, fail) -> None:
        lower = schema_property.get("minimum")
        if lower is not None and not validators.minimum(
            value, lower, schema_property.get("exclusiveMinimum", False)
        ):
            fail("minimum", "%(title) may not be less than %(minimum)", minimum=lower)
        upper = schema_property.get("maximum")
        if upper is not None and not validators.maximum(
            value, upper, schema_property.get("exclusiveMaximum", False)
        ):
            fail("maximum", "%(title) may not be greater than %(maximum)", maximum=upper)
        divisor = schema_property.get("divisibleBy")
        if divisor is not None and not validators.divisible_by(value, divisor):
            fail("divisibleBy", "%(title) is not divisible by %(divisibleBy)", divisibleBy=divisor)

    def to_json(self, options: OptionsLike = None) -> Any:
        """
        Serialize declared properties, recursing into relations.

        A model reached again while it is already being serialized emits only
        its natural id (or nothing when it has none), which cuts cycles.
        Returns None when nothing is emitted.
        """
        if self._to_json_in_progress:
            if self.id is None:
                return None
            return {self.natural_id_attribute(): self.id}

        self._to_json_in_progress = True
        try:
            result: Optional[Dict[str, Any]] = None
            relations = self.schema_relations
            for name in self.schema_properties:
                value = self.attributes.get(name)
                if value is None:
                    continue
                if name in relations and hasattr(value, "to_json"):
                    value = value.to_json(options)
                    if value is None:
                        continue
                if result is None:
                    result = {}
                result[name] = value
        finally:
            self._to_json_in_progress = False
        return result

    def url(self) -> str:
        """URL of this instance from the schema's ``self`` link or ``url_root``."""
        natural_id = self.id
        quoted_id = quote(str(natural_id), safe="") if natural_id is not None else ""
        for link in self.schema.get("links") or []:
            if isinstance(link, dict) and link.get("rel") == "self" and link.get("href"):
                return link["href"].replace("{id}", quoted_id)
        if self.url_root:
            if natural_id is None:
                return self.url_root
            return f"{self.url_root.rstrip('/')}/{quoted_id}"
        logger.error(f"{self.type_name} has no self link and no url_root")
        raise ConfigurationError(f"Cannot derive a URL for {self.type_name}")

    def dispose(self) -> None:
        """Detach listeners and drop this instance from the identity map."""
        if self.is_disposed:
            return
        self.factory.identity_map.evict(self)
        self.is_disposed = True
        if self.validation is not None:
            self.validation.clear()
        self.trigger("dispose", self)
        self.off()
