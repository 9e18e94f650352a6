"""Schema-backed collections of models and of primitive values."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from schemamodels.config.logging import get_logger
from schemamodels.errors import UnsupportedOperationError
from schemamodels.schema import validators
from .model import SchemaModel
from .observable import ObservableCollection
from .options import InstanceOptions, OptionsLike, as_options
from .validation import ValidationErrors, ValidationIssue

if TYPE_CHECKING:
    from schemamodels.factory.descriptors import CollectionType

logger = get_logger(__name__)


class SchemaCollection(ObservableCollection):
    """Ordered collection of SchemaModel instances described by an array schema."""

    is_schema_collection = True
    is_schema_value_collection = False

    def __init__(
        self,
        descriptor: "CollectionType",
        models: Any = None,
        options: OptionsLike = None,
    ):
        options = as_options(options)
        self.descriptor = descriptor
        self.is_disposed = False
        self._to_json_in_progress = False
        self._validation_in_progress = False
        self.validation: Optional[ValidationErrors] = ValidationErrors() if options.validation else None
        if options.parse_input and models is not None:
            models = self.parse(models, options)
            options = options.merged(parse=False)
        super().__init__(models, options)

    @property
    def schema(self) -> Dict[str, Any]:
        return self.descriptor.schema

    @property
    def model(self):
        """ModelType of the items (None for value collections)."""
        return self.descriptor.model

    @property
    def type_name(self) -> str:
        return self.descriptor.type_name

    def add(self, models: Any, options: OptionsLike = None) -> None:
        options = as_options(options)
        if options.parse_input:
            models = self.parse(models, options)
        super().add(models, options)

    def remove(self, models: Any, options: OptionsLike = None) -> None:
        options = as_options(options)
        if options.parse_input:
            models = self.parse(models, options)
        super().remove(models, options)

    def reset(self, models: Any = None, options: OptionsLike = None) -> None:
        options = as_options(options)
        if options.parse_input:
            models = self.parse(models, options)
            options = options.merged(parse=False)
        super().reset(models, options)

    def new_model(self, attributes: Any = None, options: OptionsLike = None) -> SchemaModel:
        """Build an item of this collection's model type without adding it."""
        return self.model.create(attributes, options)

    def add_new_model(self, attributes: Any = None, options: OptionsLike = None) -> SchemaModel:
        model = self.new_model(attributes, options)
        self.add(model, options)
        return model

    def model_id_attribute(self) -> str:
        return self.model.base.natural_id_attribute()

    def _prepare_model(self, item: Any, options: InstanceOptions) -> Any:
        if isinstance(item, SchemaModel):
            return item
        return self.new_model(item, options.merged(silent=True, parse=False))

    def _unique_key(self, item: Any) -> Any:
        return item.cid

    def validate(self, options: OptionsLike = None) -> Optional[List[ValidationIssue]]:
        """
        Check item count, uniqueness and (with ``deep``) every member.

        Issues replace the contents of ``self.validation``.

        Returns:
            The issues found, or None when valid or validation is disabled
        """
        if self.validation is None or self._validation_in_progress:
            return None
        options = as_options(options)
        schema = self.schema
        title = schema.get("title")
        errors: List[ValidationIssue] = []

        def fail(rule: str, message: str, **values: Any) -> None:
            errors.append(ValidationIssue(rule=rule, message=message, values={"title": title, **values}))

        self._validation_in_progress = True
        try:
            min_count = schema.get("minItems")
            if min_count is not None and not validators.min_items(self.models, min_count):
                fail("minItems", "Minimum of %(count) %(title) required", count=min_count)
            max_count = schema.get("maxItems")
            if max_count is not None and not validators.max_items(self.models, max_count):
                fail("maxItems", "Maximum of %(count) %(title) allowed", count=max_count)
            if schema.get("uniqueItems") and not validators.unique_items(self.models, self._unique_key):
                fail("uniqueItems", "Duplicate %(title) are not allowed")
            if options.deep:
                errors.extend(self._validate_models(options, title))
        finally:
            self._validation_in_progress = False

        self.validation.reset(errors)
        if errors:
            logger.debug(f"{self.type_name} {self.cid} failed validation with {len(errors)} error(s)")
            return errors
        return None

    def _validate_models(self, options: InstanceOptions, title: Optional[str]) -> List[ValidationIssue]:
        valid = True
        for model in self.models:
            # Every member is validated so each one records its own issues
            if not model.is_valid(options):
                valid = False
        if valid:
            return []
        return [ValidationIssue(rule="relation", message="%(title) is invalid", values={"title": title})]

    def to_json(self, options: OptionsLike = None) -> Any:
        """
        Serialize every member.

        Returns None when the collection is empty or is already being
        serialized further up the same call.
        """
        if self._to_json_in_progress or not self.models:
            return None
        self._to_json_in_progress = True
        try:
            result = []
            for model in self.models:
                value = model.to_json(options)
                if value is not None:
                    result.append(value)
        finally:
            self._to_json_in_progress = False
        return result

    def dispose(self) -> None:
        """Detach listeners; members are shared and stay alive."""
        if self.is_disposed:
            return
        self.is_disposed = True
        self.trigger("dispose", self)
        self.off()


class SchemaValueCollection(SchemaCollection):
    """
    Ordered collection of primitive values (strings, numbers, booleans).

    With ``uniqueItems`` set in the schema, values already present are not
    added again.
    """

    is_schema_collection = False
    is_schema_value_collection = True

    def __init__(
        self,
        descriptor: "CollectionType",
        values: Any = None,
        options: OptionsLike = None,
    ):
        # Keys from _value_key, so 1 and True stay distinct
        self._values_index: set = set()
        super().__init__(descriptor, values, options)

    @property
    def unique(self) -> bool:
        return bool(self.schema.get("uniqueItems"))

    @property
    def item_type(self) -> Optional[str]:
        items = self.schema.get("items")
        return items.get("type") if isinstance(items, dict) else None

    def add(self, values: Any, options: OptionsLike = None) -> None:
        options = as_options(options)
        if options.parse_input:
            values = self.parse(values, options)
        values = self._as_list(values)
        if self.unique:
            values = _dedupe(values)
        for value in values:
            key = _value_key(value)
            if self.unique and key in self._values_index:
                continue
            self._values_index.add(key)
            self.models.append(value)
            if not options.silent:
                self.trigger("add", value, self, options)

    def remove(self, values: Any, options: OptionsLike = None) -> None:
        options = as_options(options)
        if options.parse_input:
            values = self.parse(values, options)
        for value in _dedupe(self._as_list(values)):
            key = _value_key(value)
            if key not in self._values_index:
                continue
            self._values_index.discard(key)
            removed = [item for item in self.models if _value_key(item) == key]
            self.models = [item for item in self.models if _value_key(item) != key]
            if options.silent:
                continue
            for item in removed:
                self.trigger("remove", item, self, options)

    def reset(self, values: Any = None, options: OptionsLike = None) -> None:
        options = as_options(options)
        if options.parse_input:
            values = self.parse(values, options)
        values = self._as_list(values)
        self.models = _dedupe(values) if self.unique else values
        self._values_index = {_value_key(value) for value in self.models}
        if not options.silent:
            self.trigger("reset", self, options)

    def index_of(self, value: Any) -> int:
        key = _value_key(value)
        for index, item in enumerate(self.models):
            if _value_key(item) == key:
                return index
        return -1

    def contains(self, value: Any) -> bool:
        return _value_key(value) in self._values_index

    def get(self, value: Any) -> Any:
        return value if self.contains(value) else None

    def pluck(self, attribute: str) -> List[Any]:
        raise UnsupportedOperationError("pluck is not available on a value collection")

    def get_by_cid(self, cid: str) -> Any:
        raise UnsupportedOperationError("get_by_cid is not available on a value collection")

    def new_model(self, attributes: Any = None, options: OptionsLike = None) -> Any:
        raise UnsupportedOperationError("a value collection has no model type")

    def _unique_key(self, item: Any) -> Any:
        return _value_key(item)

    def _validate_models(self, options: InstanceOptions, title: Optional[str]) -> List[ValidationIssue]:
        predicate = ITEM_PREDICATES.get(self.item_type)
        if predicate is None or all(predicate(value) for value in self.models):
            return []
        return [ValidationIssue(rule="value", message="%(title) is invalid", values={"title": title})]

    def to_json(self, options: OptionsLike = None) -> Any:
        """A copy of the values, or None when empty."""
        if not self.models:
            return None
        return list(self.models)


ITEM_PREDICATES = {
    "string": lambda value: isinstance(value, str),
    "number": validators.is_number,
    "integer": validators.is_integer,
    "boolean": lambda value: isinstance(value, bool),
}


def _value_key(value: Any) -> Any:
    """Membership key of a value: typed, and by identity when unhashable."""
    try:
        hash(value)
    except TypeError:
        return (type(value), id(value))
    return (type(value), value)


def _dedupe(values: List[Any]) -> List[Any]:
    seen = set()
    result = []
    for value in values:
        key = _value_key(value)
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result
