from __future__ import annotations

import pytest

from bulk_import.catalog import ASSETS_CATALOG, PEOPLE_CATALOG, CatalogError, FieldCatalog, get_catalog
from bulk_import.catalog.validators import validate_email, validate_string
from bulk_import.models.field_spec import FieldSpec, FieldType


def _spec(key: str, **kw) -> FieldSpec:
    return FieldSpec(key=key, label=kw.pop("label", key.title()), type=FieldType.STRING,
                     validate=validate_string, **kw)


def test_duplicate_key_rejected():
    with pytest.raises(CatalogError):
        FieldCatalog("t", [_spec("name"), _spec("name", label="Other")], identity_field="name")


def test_identity_field_must_exist():
    with pytest.raises(CatalogError):
        FieldCatalog("t", [_spec("name")], identity_field="email")


def test_part_of_must_reference_a_field():
    with pytest.raises(CatalogError):
        FieldCatalog("t", [_spec("name"), _spec("first", part_of="full")], identity_field="name")


def test_colliding_spellings_rejected():
    with pytest.raises(CatalogError):
        FieldCatalog(
            "t",
            [_spec("name", synonyms=frozenset({"title"})), _spec("position", synonyms=frozenset({"Title"}))],
            identity_field="name",
        )


def test_field_for_header_normalizes():
    assert PEOPLE_CATALOG.field_for_header("E-mail") == "email"
    assert PEOPLE_CATALOG.field_for_header("  FULL name ") == "full_name"
    assert PEOPLE_CATALOG.field_for_header("Site / Location") == "site"
    assert PEOPLE_CATALOG.field_for_header("Surname") == "last_name"
    assert PEOPLE_CATALOG.field_for_header("Mobile") is None


def test_lookup_helpers():
    assert "email" in PEOPLE_CATALOG
    assert "nope" not in PEOPLE_CATALOG
    assert PEOPLE_CATALOG.get("email").type is FieldType.EMAIL
    assert PEOPLE_CATALOG.validator_of("email") is validate_email
    assert "e-mail" in PEOPLE_CATALOG.synonyms_of("email")
    assert [f.key for f in PEOPLE_CATALOG.required_fields()] == ["full_name", "email"]
    assert [f.key for f in PEOPLE_CATALOG.composed_parts("full_name")] == ["first_name", "last_name"]
    assert PEOPLE_CATALOG.normalize_identity("  Ana@X.com ") == "ana@x.com"
    with pytest.raises(CatalogError):
        PEOPLE_CATALOG.get("nope")


def test_get_catalog():
    assert get_catalog("people") is PEOPLE_CATALOG
    assert get_catalog("assets") is ASSETS_CATALOG
    with pytest.raises(CatalogError):
        get_catalog("contractors")


def test_template_excludes_name_parts():
    keys = [f.key for f in PEOPLE_CATALOG.template_fields()]
    assert "full_name" in keys
    assert "first_name" not in keys and "last_name" not in keys


def test_generate_template_has_labels_and_one_example_row():
    lines = PEOPLE_CATALOG.generate_template().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("Full Name,Email,Phone,App Role")
    assert '"10 High Street, London"' in lines[1]


def test_every_example_passes_its_validator():
    for catalog in (PEOPLE_CATALOG, ASSETS_CATALOG):
        for spec in catalog.template_fields():
            outcome = spec.validate(spec.example)
            assert outcome.ok, (catalog.name, spec.key, spec.example)
