from __future__ import annotations

from ..models.field_spec import FieldSpec, FieldType
from .base import FieldCatalog, synonyms
from .validators import (
    make_enum_validator,
    validate_date,
    validate_email,
    validate_number,
    validate_phone,
    validate_string,
)

"""People (team member) import catalog.

Identity field is ``email``. ``full_name`` may instead be supplied as separate
first/last name columns, which are composed before validation.
"""

__all__ = [
    "PEOPLE_CATALOG",
]

APP_ROLES = (("Staff", "Staff"), ("Manager", "Manager"), ("Admin", "Admin"), ("Owner", "Owner"))
SECTIONS = (("FOH", "Front of house"), ("BOH", "Back of house"), ("Both", "Both"))
CONTRACT_TYPES = (
    ("permanent", "Permanent"),
    ("temporary", "Temporary"),
    ("zero_hours", "Zero hours"),
    ("fixed_term", "Fixed term"),
    ("casual", "Casual"),
)

PEOPLE_FIELDS = (
    FieldSpec(
        key="full_name",
        label="Full Name",
        type=FieldType.STRING,
        validate=validate_string,
        required=True,
        synonyms=synonyms("name", "employee name", "staff name", "team member", "member name"),
        example="Sarah Jones",
    ),
    FieldSpec(
        key="first_name",
        label="First Name",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("firstname", "forename", "given name"),
        part_of="full_name",
    ),
    FieldSpec(
        key="last_name",
        label="Last Name",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("lastname", "surname", "family name"),
        part_of="full_name",
    ),
    FieldSpec(
        key="email",
        label="Email",
        type=FieldType.EMAIL,
        validate=validate_email,
        required=True,
        synonyms=synonyms("email address", "e-mail", "work email", "email id", "mail"),
        example="sarah.jones@example.com",
    ),
    FieldSpec(
        key="phone",
        label="Phone",
        type=FieldType.PHONE,
        validate=validate_phone,
        synonyms=synonyms("phone number", "telephone", "tel", "contact number", "phone no"),
        example="07700 900123",
    ),
    FieldSpec(
        key="app_role",
        label="App Role",
        type=FieldType.ENUM,
        validate=make_enum_validator(APP_ROLES),
        options=APP_ROLES,
        synonyms=synonyms("role", "user role", "access level", "permission level"),
        example="Staff",
    ),
    FieldSpec(
        key="position",
        label="Position",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("job title", "title", "job role", "position title"),
        example="Barista",
    ),
    FieldSpec(
        key="site",
        label="Site / Location",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("site", "location", "venue", "branch", "home site", "store"),
        example="Camden Site",
    ),
    FieldSpec(
        key="section",
        label="BOH / FOH",
        type=FieldType.ENUM,
        validate=make_enum_validator(SECTIONS),
        options=SECTIONS,
        synonyms=synonyms("section", "department", "area", "foh boh"),
        example="FOH",
    ),
    FieldSpec(
        key="preferred_name",
        label="Preferred Name",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("known as", "nickname"),
        example="Sarah",
    ),
    FieldSpec(
        key="date_of_birth",
        label="Date of Birth",
        type=FieldType.DATE,
        validate=validate_date,
        synonyms=synonyms("dob", "birth date", "birthday"),
        example="15/06/1995",
        inferable=False,  # indistinguishable from start date by content
    ),
    FieldSpec(
        key="start_date",
        label="Start Date",
        type=FieldType.DATE,
        validate=validate_date,
        synonyms=synonyms("employment start", "start", "date started", "hire date", "joined"),
        example="01/03/2024",
    ),
    FieldSpec(
        key="contract_type",
        label="Contract Type",
        type=FieldType.ENUM,
        validate=make_enum_validator(CONTRACT_TYPES),
        options=CONTRACT_TYPES,
        synonyms=synonyms("employment type", "contract"),
        example="permanent",
    ),
    FieldSpec(
        key="employee_id",
        label="Employee ID",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("employee number", "staff id", "payroll id", "payroll number", "emp id"),
        example="EMP001",
    ),
    FieldSpec(
        key="emergency_contact_name",
        label="Emergency Contact Name",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("emergency contact", "next of kin"),
        example="John Jones",
    ),
    FieldSpec(
        key="emergency_contact_phone",
        label="Emergency Contact Phone",
        type=FieldType.PHONE,
        validate=validate_phone,
        synonyms=synonyms("emergency phone", "emergency contact number", "next of kin phone"),
        example="07700 900456",
        inferable=False,
    ),
    FieldSpec(
        key="address",
        label="Address",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("home address", "street address"),
        example="10 High Street, London",
    ),
    FieldSpec(
        key="contracted_hours",
        label="Contracted Hours",
        type=FieldType.NUMBER,
        validate=validate_number,
        synonyms=synonyms("hours", "weekly hours", "hours per week"),
        example="35",
    ),
    FieldSpec(
        key="gender",
        label="Gender",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("sex"),
        example="Female",
    ),
    FieldSpec(
        key="pronouns",
        label="Pronouns",
        type=FieldType.STRING,
        validate=validate_string,
        example="she/her",
    ),
)

PEOPLE_CATALOG = FieldCatalog("people", PEOPLE_FIELDS, identity_field="email")
