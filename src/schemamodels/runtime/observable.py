"""Attribute-holding model and ordered collection bases with change events."""

import itertools
from typing import Any, Dict, Iterator, List, Mapping, Optional
from schemamodels.config.settings import get_settings
from .events import Events
from .options import InstanceOptions, OptionsLike, as_options

_cid_counter = itertools.count(1)


def next_cid() -> str:
    """Process-unique client identifier for a model or collection."""
    return f"c{next(_cid_counter)}"


class ObservableModel(Events):
    """
    Attribute map with ``change`` events.

    Events: ``change:<attribute>`` (model, value, options) per changed
    attribute, then ``change`` (model, options), unless ``silent`` is set.
    """

    # Attribute holding the natural identifier; None uses Settings.id_attribute
    id_attribute: Optional[str] = None

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None, options: OptionsLike = None):
        options = as_options(options)
        self.cid = next_cid()
        self.attributes: Dict[str, Any] = {}
        if options.parse_input:
            attributes = self.parse(attributes, options)
        merged = dict(self.defaults())
        merged.update(attributes or {})
        merged = self._prepare_attributes(merged, options)
        self._apply(merged, options.merged(silent=True))

    @classmethod
    def natural_id_attribute(cls) -> str:
        return cls.id_attribute or get_settings().id_attribute

    @property
    def id(self) -> Any:
        return self.attributes.get(self.natural_id_attribute())

    def defaults(self) -> Dict[str, Any]:
        return {}

    def parse(self, data: Any, options: Optional[InstanceOptions] = None) -> Any:
        """Transform raw input before it becomes attributes."""
        return data

    def get(self, key: str) -> Any:
        return self.attributes.get(key)

    def has(self, key: str) -> bool:
        return self.attributes.get(key) is not None

    def set(self, key: Any, value: Any = None, options: OptionsLike = None) -> bool:
        """
        Set one attribute (``set(key, value)``) or several (``set(mapping)``).

        Returns:
            False when validation was requested and failed, True otherwise
        """
        if key is None or isinstance(key, Mapping):
            attributes, options = dict(key or {}), value if options is None else options
        else:
            attributes = {key: value}
        options = as_options(options)
        attributes = self._prepare_attributes(attributes, options)

        if options.validation:
            errors = self.validate(attributes, options)
            if errors:
                self.trigger("invalid", self, errors, options)
                return False

        self._apply(attributes, options)
        return True

    def unset(self, key: str, options: OptionsLike = None) -> None:
        options = as_options(options)
        if key not in self.attributes:
            return
        del self.attributes[key]
        if not options.silent:
            self.trigger(f"change:{key}", self, None, options)
            self.trigger("change", self, options)

    def validate(self, attributes: Optional[Mapping[str, Any]] = None, options: OptionsLike = None):
        return None

    def is_valid(self, options: OptionsLike = None) -> bool:
        return self.validate(None, options) is None

    def to_json(self, options: OptionsLike = None) -> Any:
        return dict(self.attributes)

    def _prepare_attributes(self, attributes: Dict[str, Any], options: InstanceOptions) -> Dict[str, Any]:
        return attributes

    def _apply(self, attributes: Mapping[str, Any], options: InstanceOptions) -> None:
        changed: List[str] = []
        for name, value in attributes.items():
            if name in self.attributes and _unchanged(self.attributes[name], value):
                continue
            self.attributes[name] = value
            changed.append(name)

        if options.silent or not changed:
            return
        for name in changed:
            self.trigger(f"change:{name}", self, self.attributes[name], options)
        self.trigger("change", self, options)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.cid} id={self.id!r}>"


class ObservableCollection(Events):
    """
    Ordered collection of models, indexed by natural id and client id.

    Events: ``add`` (model, collection, options), ``remove`` (model,
    collection, options), ``reset`` (collection, options).
    """

    def __init__(self, models: Any = None, options: OptionsLike = None):
        options = as_options(options)
        self.cid = next_cid()
        self.models: List[Any] = []
        self._by_key: Dict[Any, Any] = {}
        if models is not None:
            self.reset(models, options.merged(silent=True))

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.models)

    @property
    def length(self) -> int:
        return len(self.models)

    def parse(self, data: Any, options: Optional[InstanceOptions] = None) -> Any:
        return data

    def at(self, index: int) -> Any:
        return self.models[index]

    def index_of(self, item: Any) -> int:
        """Position of ``item``, or -1 when absent."""
        for index, model in enumerate(self.models):
            if model is item:
                return index
        return -1

    def contains(self, item: Any) -> bool:
        return self.index_of(item) != -1

    def get(self, id_or_cid: Any) -> Any:
        """Look up a member by natural id, client id or the model itself."""
        if id_or_cid is None:
            return None
        if isinstance(id_or_cid, ObservableModel):
            return self._by_key.get(id_or_cid.cid)
        return self._by_key.get(id_or_cid)

    def get_by_cid(self, cid: str) -> Any:
        return self._by_key.get(cid)

    def model_id_attribute(self) -> str:
        """Attribute holding the natural id of members."""
        return ObservableModel.natural_id_attribute()

    def pluck(self, attribute: str) -> List[Any]:
        return [model.get(attribute) for model in self.models]

    def add(self, models: Any, options: OptionsLike = None) -> None:
        options = as_options(options)
        for item in self._as_list(models):
            model = self._prepare_model(item, options)
            if model is None or model.cid in self._by_key:
                continue
            self.models.append(model)
            self._index(model)
            if not options.silent:
                self.trigger("add", model, self, options)

    def remove(self, models: Any, options: OptionsLike = None) -> None:
        options = as_options(options)
        for item in self._as_list(models):
            if isinstance(item, Mapping):
                item = item.get(self.model_id_attribute())
            model = self.get(item)
            if model is None:
                continue
            self.models.remove(model)
            self._unindex(model)
            if not options.silent:
                self.trigger("remove", model, self, options)

    def reset(self, models: Any = None, options: OptionsLike = None) -> None:
        options = as_options(options)
        self.models = []
        self._by_key = {}
        self.add(models or [], options.merged(silent=True))
        if not options.silent:
            self.trigger("reset", self, options)

    def validate(self, options: OptionsLike = None):
        return None

    def is_valid(self, options: OptionsLike = None) -> bool:
        return self.validate(options) is None

    def to_json(self, options: OptionsLike = None) -> Any:
        return [model.to_json(options) for model in self.models]

    def _prepare_model(self, item: Any, options: InstanceOptions) -> Any:
        return item

    def _index(self, model: Any) -> None:
        self._by_key[model.cid] = model
        if model.id is not None:
            self._by_key[model.id] = model

    def _unindex(self, model: Any) -> None:
        self._by_key.pop(model.cid, None)
        if model.id is not None and self._by_key.get(model.id) is model:
            del self._by_key[model.id]

    @staticmethod
    def _as_list(models: Any) -> List[Any]:
        if models is None:
            return []
        if isinstance(models, (list, tuple)):
            return list(models)
        return [models]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.cid} length={len(self.models)}>"


def _unchanged(current: Any, value: Any) -> bool:
    return current is value or (type(current) is type(value) and current == value)
