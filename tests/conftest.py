"""Shared fixtures: fresh factories and a registered set of related schemas."""

import pytest
from schemamodels import SchemaCollection, SchemaFactory, SchemaModel
from schemamodels.config import reset_settings

PERSON_ID = "/schemamodels/tests/person"
COMPANY_ID = "/schemamodels/tests/company"
COMPANIES_ID = "/schemamodels/tests/companies"
EMPLOYEE_ID = "/schemamodels/tests/employee"
ADDRESS_ID = "/schemamodels/tests/address"
PHONE_NUMBER_ID = "/schemamodels/tests/phone-number"
PHONE_NUMBERS_ID = "/schemamodels/tests/phone-numbers"


class Person(SchemaModel):
    def full_name(self):
        return f"{self.get('name')} {self.get('surname')}"


class Companies(SchemaCollection):
    def count(self):
        return len(self)


def person_schema():
    return {
        "id": PERSON_ID,
        "title": "Person",
        "type": "object",
        "properties": {
            "id": {"type": "integer"},
            "name": {"type": "string", "required": True},
            "surname": {"type": "string", "required": True},
            "address": {"$ref": f"{ADDRESS_ID}#"},
            "homePhoneNumber": {"$ref": f"{PHONE_NUMBER_ID}#"},
            "mobilePhoneNumber": {"$ref": f"{PHONE_NUMBER_ID}#"},
            "spouse": {"$ref": "#"},
            "friends": {"type": "array", "items": {"$ref": "#"}},
        },
    }


def company_schema():
    return {
        "id": COMPANY_ID,
        "title": "Company",
        "type": "object",
        "properties": {
            "name": {"type": "string", "required": True},
            "address": {"extends": f"{ADDRESS_ID}#", "required": True},
            "phoneNumbers": {"$ref": f"{PHONE_NUMBERS_ID}#"},
            "employees": {"type": "array", "items": {"$ref": f"{EMPLOYEE_ID}#"}},
        },
    }


def companies_schema():
    return {
        "id": COMPANIES_ID,
        "title": "Companies",
        "type": "array",
        "items": {"$ref": f"{COMPANY_ID}#"},
    }


def employee_schema():
    return {
        "id": EMPLOYEE_ID,
        "title": "Employee",
        "type": "object",
        "extends": {"$ref": f"{PERSON_ID}#"},
        "properties": {
            "joinDate": {"type": "string", "format": "date", "required": True},
            "reportsTo": {"$ref": "#"},
        },
    }


def address_schema():
    return {
        "id": ADDRESS_ID,
        "title": "Address",
        "type": "object",
        "properties": {
            "streetNumber": {"type": "string"},
            "addressLine1": {"type": "string"},
            "addressLine2": {"type": "string"},
            "town": {"type": "string"},
            "city": {"type": "string"},
            "country": {"type": "string"},
        },
    }


def phone_number_schema():
    return {
        "id": PHONE_NUMBER_ID,
        "title": "Phone Number",
        "type": "object",
        "properties": {
            "countryCode": {"type": "string"},
            "areaCode": {"type": "string"},
            "number": {"type": "string"},
        },
    }


def phone_numbers_schema():
    return {
        "id": PHONE_NUMBERS_ID,
        "title": "Phone Numbers",
        "type": "array",
        "items": {"$ref": f"{PHONE_NUMBER_ID}#"},
    }


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from default settings."""
    for name in ("SCHEMAMODELS_LOG_LEVEL", "SCHEMAMODELS_ID_ATTRIBUTE", "SCHEMAMODELS_SCHEMA_DIR"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def factory():
    """A factory that cannot fetch unregistered schemas."""
    return SchemaFactory(fetch=lambda schema_id: None)


@pytest.fixture
def registered_factory(factory):
    """A factory with the person/company family of schemas registered."""
    factory.register_schema(person_schema(), Person)
    factory.register_schema(companies_schema(), Companies)
    factory.register_schema(company_schema())
    factory.register_schema(employee_schema())
    factory.register_schema(address_schema())
    factory.register_schema(phone_numbers_schema())
    factory.register_schema(phone_number_schema())
    return factory
