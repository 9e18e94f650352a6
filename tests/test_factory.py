"""Tests for schema registration and type derivation."""

import pytest
from conftest import COMPANIES_ID, COMPANY_ID, PERSON_ID, Companies, Person
from schemamodels import (
    CollectionType,
    ConfigurationError,
    ModelType,
    SchemaCollection,
    SchemaFactory,
    SchemaModel,
    SchemaValueCollection,
    UnresolvedReferenceError,
)


def test_retrieve_registered_schema(registered_factory):
    """Test that registered schemas are returned by id, with or without a trailing hash."""
    schema = registered_factory.get_schema(PERSON_ID)
    assert schema["title"] == "Person"
    assert registered_factory.get_schema(f"{PERSON_ID}#") is schema


def test_register_requires_id(factory):
    """Test that schemas without an id cannot be registered."""
    with pytest.raises(ConfigurationError):
        factory.register_schema({"type": "object"})
    with pytest.raises(ConfigurationError):
        factory.register_schema("")


def test_register_rejects_non_schema_type(factory):
    """Test that override types need a capability marker."""

    class Plain:
        pass

    with pytest.raises(ConfigurationError):
        factory.register_schema({"id": "/x", "type": "object"}, Plain)


def test_factory_rejects_unmarked_bases():
    """Test that default bases are checked at construction."""

    class NotAModel:
        pass

    with pytest.raises(ConfigurationError):
        SchemaFactory(model=NotAModel)
    with pytest.raises(ConfigurationError):
        SchemaFactory(collection=SchemaModel)
    with pytest.raises(ConfigurationError):
        SchemaFactory(value_collection=SchemaCollection)


def test_create_type_is_cached(registered_factory):
    """Test that deriving a type twice returns the same descriptor."""
    first = registered_factory.create_type(PERSON_ID)
    second = registered_factory.create_type(registered_factory.get_schema(PERSON_ID))
    assert isinstance(first, ModelType)
    assert first is second


def test_create_type_names(registered_factory):
    """Test derived type names for models and collections."""
    person = registered_factory.create_type(PERSON_ID)
    companies = registered_factory.create_type(COMPANIES_ID)
    assert person.type_name == "PersonSchemaModel"
    assert isinstance(companies, CollectionType)
    assert companies.type_name == "CompaniesCollection"
    assert companies.model.type_name == "CompanySchemaModel"


def test_untitled_type_names(factory):
    """Test type names derived without titles."""
    model = factory.create_type({"type": "object"})
    model_collection = factory.create_type(
        {"type": "array", "items": {"title": "Phone Number", "type": "object"}}
    )
    value_collection = factory.create_type({"type": "array", "items": {"type": "string"}})
    assert model.type_name == "UnknownSchemaModel"
    assert model_collection.type_name == "PhoneNumberSchemaCollection"
    assert value_collection.type_name == "StringCollection"
    assert value_collection.is_value_collection


def test_registered_override_types(registered_factory):
    """Test that types registered with a schema become the base of derived types."""
    person_type = registered_factory.create_type(PERSON_ID)
    companies_type = registered_factory.create_type(COMPANIES_ID)
    assert person_type.base is Person
    assert companies_type.base is Companies
    assert registered_factory.create_type(COMPANY_ID).base is SchemaModel


def test_explicit_override_type(factory):
    """Test passing an override base type directly."""

    class Custom(SchemaModel):
        pass

    descriptor = factory.create_type({"id": "/custom", "type": "object"}, Custom)
    assert descriptor.base is Custom
    assert isinstance(factory.create_instance("/custom"), Custom)


def test_relations_are_derived(registered_factory):
    """Test that object and array properties become relations."""
    person_type = registered_factory.create_type(PERSON_ID)
    assert person_type.relations["spouse"] is person_type
    assert person_type.relations["friends"].model is person_type
    assert person_type.relations["homePhoneNumber"] is person_type.relations["mobilePhoneNumber"]
    assert "name" not in person_type.relations


def test_defaults_are_collected(factory):
    """Test that schema defaults are recorded on the descriptor."""
    descriptor = factory.create_type(
        {"id": "/defaults", "type": "object", "properties": {"status": {"type": "string", "default": "new"}}}
    )
    assert descriptor.defaults == {"status": "new"}
    assert factory.create_instance("/defaults").get("status") == "new"


@pytest.mark.parametrize("item_type", ["array", "any", "null"])
def test_unsupported_item_types(factory, item_type):
    """Test that unsupported item types are rejected."""
    with pytest.raises(ConfigurationError, match="Unsupported"):
        factory.create_type({"type": "array", "items": {"type": item_type}})


def test_unknown_item_type(factory):
    """Test that unknown item types are rejected."""
    with pytest.raises(ConfigurationError, match="Unknown"):
        factory.create_type({"type": "array", "items": {"type": "date"}})


def test_array_without_items(factory):
    """Test that array schemas need items."""
    with pytest.raises(ConfigurationError):
        factory.create_type({"type": "array"})


def test_unregister_schema(registered_factory):
    """Test that unregistered ids can no longer be found."""
    registered_factory.create_type(PERSON_ID)
    registered_factory.unregister_schema(PERSON_ID)
    with pytest.raises(UnresolvedReferenceError):
        registered_factory.get_schema(PERSON_ID)
    assert PERSON_ID not in registered_factory.type_cache


def test_reset_clears_everything(registered_factory):
    """Test that reset empties every cache."""
    person = registered_factory.create_instance(PERSON_ID, {"id": 1})
    registered_factory.reset()
    assert registered_factory.registered_schemas == {}
    assert registered_factory.type_cache == {}
    assert len(registered_factory.identity_map) == 0
    assert person.get("id") == 1


def test_reregistering_a_new_document_rebuilds_the_type(factory):
    """Test that a different document under the same id replaces the cached type."""
    first = factory.create_type({"id": "/doc", "title": "First", "type": "object"})
    second = factory.create_type({"id": "/doc", "title": "Second", "type": "object"})
    assert first is not second
    assert second.type_name == "SecondSchemaModel"


def test_create_instance_argument_forms(registered_factory):
    """Test that the override type may be omitted."""
    with_type = registered_factory.create_instance(PERSON_ID, Person, {"name": "Marcus"})
    without_type = registered_factory.create_instance(PERSON_ID, {"name": "Kadija"}, {"validate": False})
    assert with_type.get("name") == "Marcus"
    assert registered_factory.create_type(PERSON_ID).is_instance(with_type)
    assert not registered_factory.create_type(COMPANY_ID).is_instance(with_type)
    assert without_type.get("name") == "Kadija"
    assert without_type.validation is None


def test_create_collection_instance(registered_factory):
    """Test creating a collection instance from a registered array schema."""
    companies = registered_factory.create_instance(COMPANIES_ID, [{"name": "Redpie"}])
    assert isinstance(companies, Companies)
    assert companies.count() == 1


def test_value_collection_instance(factory):
    """Test creating a value collection from an array-of-strings schema."""
    tags = factory.create_instance({"type": "array", "items": {"type": "string"}}, ["a", "b"])
    assert isinstance(tags, SchemaValueCollection)
    assert tags.to_json() == ["a", "b"]


def test_fetch_unregistered_schema():
    """Test that unregistered schemas are obtained through the fetcher."""
    documents = {"/remote/thing": {"title": "Thing", "type": "object"}}
    factory = SchemaFactory(fetch=documents.get)
    thing = factory.create_type("/remote/thing#")
    assert thing.type_name == "ThingSchemaModel"
    assert thing.schema["id"] == "/remote/thing"


def test_deep_nested_registered_schemas(registered_factory):
    """Test building nested models and collections from registered schemas."""
    companies = registered_factory.create_instance(
        COMPANIES_ID,
        [
            {
                "name": "Redpie",
                "address": {"town": "Dublin"},
                "phoneNumbers": [{"number": "123"}],
                "employees": [
                    {"name": "Marcus", "surname": "Mac Innes", "spouse": {"name": "Kadija"}},
                ],
            }
        ],
    )
    company = companies.at(0)
    assert company.get("address").get("town") == "Dublin"
    assert company.get("phoneNumbers").at(0).get("number") == "123"
    employee = company.get("employees").at(0)
    assert employee.type_name == "EmployeeSchemaModel"
    assert isinstance(employee.get("spouse"), Person)
    assert employee.get("spouse").get("name") == "Kadija"
