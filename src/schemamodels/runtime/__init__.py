"""Live model and collection instances built from derived types."""

from .collection import SchemaCollection, SchemaValueCollection
from .events import Events
from .model import SchemaModel
from .observable import ObservableCollection, ObservableModel
from .options import InstanceOptions, as_options
from .validation import ERROR_LEVELS, ValidationErrors, ValidationIndex, ValidationIssue

__all__ = [
    "SchemaCollection",
    "SchemaValueCollection",
    "Events",
    "SchemaModel",
    "ObservableCollection",
    "ObservableModel",
    "InstanceOptions",
    "as_options",
    "ERROR_LEVELS",
    "ValidationErrors",
    "ValidationIndex",
    "ValidationIssue",
]
