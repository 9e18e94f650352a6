"""Constraint predicates used to validate model attributes and collections."""

import ipaddress
import math
import re
from numbers import Number
from typing import Any, Callable, Dict, Iterable, Optional, Pattern, Sequence
from schemamodels.config.logging import get_logger

logger = get_logger(__name__)

# Compiled patterns keyed by source, shared by every validator call
_REGEX_CACHE: Dict[str, Pattern] = {}

_COLOR_NAMES = (
    "aliceblue|antiquewhite|aqua|aquamarine|azure|beige|bisque|black|blanchedalmond|"
    "blue|blueviolet|brown|burlywood|cadetblue|chartreuse|chocolate|coral|"
    "cornflowerblue|cornsilk|crimson|cyan|darkblue|darkcyan|darkgoldenrod|darkgray|"
    "darkgreen|darkkhaki|darkmagenta|darkolivegreen|darkorange|darkorchid|darkred|"
    "darksalmon|darkseagreen|darkslateblue|darkslategray|darkturquoise|darkviolet|"
    "deeppink|deepskyblue|dimgray|dodgerblue|firebrick|floralwhite|forestgreen|"
    "fuchsia|gainsboro|ghostwhite|gold|goldenrod|gray|green|greenyellow|honeydew|"
    "hotpink|indianred|indigo|ivory|khaki|lavender|lavenderblush|lawngreen|"
    "lemonchiffon|lightblue|lightcoral|lightcyan|lightgoldenrodyellow|lightgrey|"
    "lightgreen|lightpink|lightsalmon|lightseagreen|lightskyblue|lightslategray|"
    "lightsteelblue|lightyellow|lime|limegreen|linen|magenta|maroon|"
    "mediumaquamarine|mediumblue|mediumorchid|mediumpurple|mediumseagreen|"
    "mediumslateblue|mediumspringgreen|mediumturquoise|mediumvioletred|midnightblue|"
    "mintcream|mistyrose|moccasin|navajowhite|navy|oldlace|olive|olivedrab|orange|"
    "orangered|orchid|palegoldenrod|palegreen|paleturquoise|palevioletred|papayawhip|"
    "peachpuff|peru|pink|plum|powderblue|purple|red|rosybrown|royalblue|saddlebrown|"
    "salmon|sandybrown|seagreen|seashell|sienna|silver|skyblue|slateblue|slategray|"
    "snow|springgreen|steelblue|tan|teal|thistle|tomato|turquoise|violet|wheat|white|"
    "whitesmoke|yellow|yellowgreen"
)

FORMAT_PATTERNS: Dict[str, str] = {
    "color": rf"^(#[A-F0-9]{{6}}|{_COLOR_NAMES})$",
    "phone": r"^\+(?:[0-9]\x20?){6,14}[0-9]$",
    "uri": r"^(?:https?|ftp)://.+\..+$",
    "email": (
        r"^[-a-z0-9~!$%^&*_=+}{'?]+(\.[-a-z0-9~!$%^&*_=+}{'?]+)*@"
        r"([a-z0-9_][-a-z0-9_]*(\.[-a-z0-9_]+)*\."
        r"(aero|arpa|biz|com|coop|edu|gov|info|int|mil|museum|name|net|org|pro|travel|mobi|[a-z][a-z])"
        r"|([0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}))(:[0-9]{1,5})?$"
    ),
}

# Formats that are accepted without checking
UNCHECKED_FORMATS = frozenset(
    {
        "style",
        "date-time",
        "date",
        "time",
        "utc-millisec",
        "regex",
        "street-address",
        "locality",
        "region",
        "postal-code",
        "country",
    }
)


def is_number(value: Any) -> bool:
    """True for int/float values, excluding bools."""
    return isinstance(value, Number) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    """True for ints and integral floats, excluding bools."""
    if not is_number(value):
        return False
    if isinstance(value, int):
        return True
    return math.isfinite(value) and float(value).is_integer()


def _is_nan(value: Any) -> bool:
    return not is_number(value) or (isinstance(value, float) and math.isnan(value))


def required(value: Any, is_required: bool = True) -> bool:
    if not is_required:
        return True
    if value is None or (isinstance(value, str) and value == ""):
        return False
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return False
    return True


def min_length(value: Optional[str], limit: int) -> bool:
    return value is not None and len(value) >= limit


def max_length(value: Optional[str], limit: int) -> bool:
    return value is None or len(value) <= limit


def minimum(value: Any, limit: float, exclusive: bool = False) -> bool:
    if _is_nan(value):
        return False
    return value > limit if exclusive is True else value >= limit


def maximum(value: Any, limit: float, exclusive: bool = False) -> bool:
    if _is_nan(value):
        return False
    return value < limit if exclusive is True else value <= limit


def divisible_by(value: Any, divisor: float) -> bool:
    if _is_nan(value) or divisor == 0:
        return False
    return value % divisor == 0


def matches_pattern(value: str, source: str) -> bool:
    """Case-insensitive search of ``source`` in ``value``."""
    regex = _REGEX_CACHE.get(source)
    if regex is None:
        regex = re.compile(source, re.IGNORECASE)
        _REGEX_CACHE[source] = regex
    return regex.search(value) is not None


def matches_format(value: str, format_name: str) -> bool:
    if format_name in FORMAT_PATTERNS:
        return matches_pattern(value, FORMAT_PATTERNS[format_name])

    if format_name in ("ip-address", "ipv4"):
        return _parses_as(ipaddress.IPv4Address, value)
    if format_name == "ipv6":
        return _parses_as(ipaddress.IPv6Address, value)

    if format_name in UNCHECKED_FORMATS:
        logger.warning(f"Validation not implemented for format: {format_name}")
    else:
        logger.warning(f"Unknown validation format: {format_name}")
    return True


def _parses_as(address_type: type, value: str) -> bool:
    try:
        address_type(value)
    except ValueError:
        return False
    return True


def min_items(items: Sequence[Any], limit: int) -> bool:
    return len(items) >= limit


def max_items(items: Sequence[Any], limit: int) -> bool:
    return len(items) <= limit


def unique_items(
    items: Iterable[Any], transform: Optional[Callable[[Any], Any]] = None
) -> bool:
    """
    Check that no two items share the same key.

    Args:
        items: Items to check
        transform: Maps an item to its uniqueness key (identity by default)
    """
    seen = set()
    for item in items:
        key = transform(item) if transform is not None else item
        if key in seen:
            return False
        seen.add(key)
    return True


# Table of every constraint predicate, keyed by schema keyword
VALIDATORS: Dict[str, Callable[..., bool]] = {
    "required": required,
    "minLength": min_length,
    "maxLength": max_length,
    "minimum": minimum,
    "maximum": maximum,
    "divisibleBy": divisible_by,
    "pattern": matches_pattern,
    "format": matches_format,
    "minItems": min_items,
    "maxItems": max_items,
    "uniqueItems": unique_items,
}


def get_validator(keyword: str) -> Callable[..., bool]:
    """
    Get the predicate for a schema keyword.

    Raises:
        KeyError: If no predicate is registered for the keyword
    """
    if keyword not in VALIDATORS:
        available = ", ".join(sorted(VALIDATORS.keys()))
        raise KeyError(f"Validator '{keyword}' not found. Available validators: {available}")
    return VALIDATORS[keyword]


def extend_schema(target: Dict[str, Any], extension: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge ``extension`` into ``target`` in place (schema inheritance).

    Keys missing from ``target`` are copied by reference; keys present on
    both sides are merged recursively when both values are mappings.
    Values already defined by ``target`` are never overwritten.

    Returns:
        The modified target
    """
    _extend(target, extension, set())
    return target


def _extend(target: Dict[str, Any], extension: Dict[str, Any], visited: set) -> None:
    pair = (id(target), id(extension))
    if pair in visited:
        return
    visited.add(pair)

    for key, extension_value in extension.items():
        if extension_value is None:
            continue
        target_value = target.get(key)
        if target_value is extension_value:
            continue
        if key not in target or target_value is None:
            target[key] = extension_value
        elif isinstance(target_value, dict) and isinstance(extension_value, dict):
            _extend(target_value, extension_value, visited)
