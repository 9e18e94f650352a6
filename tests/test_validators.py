"""Tests for constraint predicates and schema extension."""

import logging
import pytest
from schemamodels.schema import VALIDATORS, extend_schema, get_validator
from schemamodels.schema import validators


def test_required():
    """Test required-value detection."""
    assert validators.required("value", True)
    assert validators.required(0, True)
    assert validators.required(False, True)
    assert not validators.required(None, True)
    assert not validators.required("", True)
    assert not validators.required([], True)
    assert validators.required(None, False)
    assert validators.required("", False)


def test_string_lengths():
    """Test minLength and maxLength predicates."""
    assert validators.min_length("123456", 5)
    assert not validators.min_length("1234", 5)
    assert validators.max_length("1234", 5)
    assert not validators.max_length("123456", 5)


def test_minimum_and_exclusive_minimum():
    """Test inclusive and exclusive lower bounds."""
    assert validators.minimum(5, 5)
    assert not validators.minimum(4, 5)
    assert not validators.minimum(5, 5, True)
    assert validators.minimum(6, 5, True)
    assert not validators.minimum("6", 5)


def test_maximum_and_exclusive_maximum():
    """Test inclusive and exclusive upper bounds."""
    assert validators.maximum(5, 5)
    assert not validators.maximum(6, 5)
    assert not validators.maximum(5, 5, True)
    assert validators.maximum(4, 5, True)
    assert not validators.maximum(float("nan"), 5)


def test_divisible_by():
    """Test divisibility including fractional divisors."""
    assert validators.divisible_by(10, 5)
    assert not validators.divisible_by(11, 5)
    assert validators.divisible_by(7.5, 2.5)
    assert not validators.divisible_by(10, 0)


def test_number_predicates():
    """Test numeric and integer classification."""
    assert validators.is_number(1)
    assert validators.is_number(1.5)
    assert not validators.is_number(True)
    assert not validators.is_number("1")
    assert validators.is_integer(3)
    assert validators.is_integer(3.0)
    assert not validators.is_integer(3.5)
    assert not validators.is_integer(False)


def test_pattern_is_case_insensitive():
    """Test that patterns are searched without regard to case."""
    assert validators.matches_pattern("Hello World", "^hello")
    assert validators.matches_pattern("abc123", r"\d+")
    assert not validators.matches_pattern("abc", r"^\d+$")


@pytest.mark.parametrize(
    "value,format_name,expected",
    [
        ("marcus@example.com", "email", True),
        ("not-an-email", "email", False),
        ("#FFAA00", "color", True),
        ("red", "color", True),
        ("reddish", "color", False),
        ("+353 1 234 5678", "phone", True),
        ("12345", "phone", False),
        ("http://example.com/path", "uri", True),
        ("example", "uri", False),
        ("192.168.0.1", "ip-address", True),
        ("999.1.1.1", "ip-address", False),
        ("::1", "ipv6", True),
        ("12345::zz", "ipv6", False),
    ],
)
def test_formats(value, format_name, expected):
    """Test the checked formats."""
    assert validators.matches_format(value, format_name) is expected


def test_unchecked_and_unknown_formats_pass_with_warning():
    """Test that formats without a checker pass and log a warning."""
    records = []

    class Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = Collect(level=logging.WARNING)
    logger = logging.getLogger("schemamodels")
    logger.addHandler(handler)
    try:
        assert validators.matches_format("anything", "date-time")
        assert validators.matches_format("anything", "made-up-format")
    finally:
        logger.removeHandler(handler)

    messages = [record.getMessage() for record in records]
    assert any("date-time" in message for message in messages)
    assert any("made-up-format" in message for message in messages)


def test_item_predicates():
    """Test minItems, maxItems and uniqueItems."""
    assert validators.min_items([1, 2], 2)
    assert not validators.min_items([1], 2)
    assert validators.max_items([1, 2], 2)
    assert not validators.max_items([1, 2, 3], 2)
    assert validators.unique_items([1, 2, 3])
    assert not validators.unique_items([1, 2, 1])
    assert validators.unique_items(["a", "A"])
    assert not validators.unique_items(["a", "A"], transform=str.lower)


def test_validator_table():
    """Test lookups in the validator table."""
    assert get_validator("maxLength") is validators.max_length
    assert set(VALIDATORS) >= {"required", "pattern", "format", "uniqueItems"}
    with pytest.raises(KeyError, match="Available validators"):
        get_validator("nope")


def test_extend_schema_merges_without_overwriting():
    """Test that extension fills gaps and keeps the target's own values."""
    base_properties = {"name": {"type": "string"}, "age": {"type": "integer"}}
    target = {
        "title": "Employee",
        "properties": {"name": {"type": "string", "maxLength": 5}, "joinDate": {"type": "string"}},
    }
    extend_schema(target, {"title": "Person", "type": "object", "properties": base_properties})

    assert target["title"] == "Employee"
    assert target["type"] == "object"
    assert set(target["properties"]) == {"name", "age", "joinDate"}
    assert target["properties"]["name"]["maxLength"] == 5
    assert target["properties"]["age"] is base_properties["age"]


def test_extend_schema_handles_cycles():
    """Test that self-referencing extensions terminate."""
    extension = {"type": "object", "properties": {}}
    extension["properties"]["self"] = extension
    target = {"properties": {"self": {"title": "Self"}}}
    extend_schema(target, extension)
    assert target["properties"]["self"]["type"] == "object"
