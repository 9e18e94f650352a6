"""Options accepted by model and collection operations."""

from typing import Any, Mapping, Union
from pydantic import BaseModel, ConfigDict, Field


class InstanceOptions(BaseModel):
    """
    Options recognised when constructing, mutating and validating instances.

    ``validate`` and ``parse`` are exposed under those names; the Python
    attributes are ``validation`` and ``parse_input``. Unknown keys are kept
    and passed along to nested operations.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    validation: bool = Field(default=True, alias="validate")
    identity_map: bool = True
    deep: bool = False
    silent: bool = False
    parse_input: bool = Field(default=False, alias="parse")

    def merged(self, **changes: Any) -> "InstanceOptions":
        """Return a copy with ``changes`` (public option names) applied."""
        data = self.model_dump(by_alias=True)
        data.update(changes)
        return InstanceOptions.model_validate(data)

    def explicitly_sets(self, name: str) -> bool:
        field_name = {"validate": "validation", "parse": "parse_input"}.get(name, name)
        return field_name in self.model_fields_set


OptionsLike = Union[InstanceOptions, Mapping[str, Any], None]


def as_options(options: OptionsLike = None, **overrides: Any) -> InstanceOptions:
    """Normalise a mapping, None or InstanceOptions, then apply ``overrides``."""
    if isinstance(options, InstanceOptions):
        result = options
    elif options is None:
        result = InstanceOptions()
    else:
        result = InstanceOptions.model_validate(dict(options))
    return result.merged(**overrides) if overrides else result
