from __future__ import annotations

from ..models.field_spec import FieldSpec, FieldType
from .base import FieldCatalog, synonyms
from .validators import validate_date, validate_email, validate_string

"""Asset register import catalog (identity: serial number)."""

__all__ = [
    "ASSETS_CATALOG",
]

ASSET_FIELDS = (
    FieldSpec(
        key="name",
        label="Asset Name",
        type=FieldType.STRING,
        validate=validate_string,
        required=True,
        synonyms=synonyms("asset", "equipment", "item", "description"),
        example="Walk-in Fridge",
    ),
    FieldSpec(
        key="category",
        label="Category",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("type", "asset type"),
        example="Refrigeration",
    ),
    FieldSpec(
        key="site",
        label="Site",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("location", "venue", "branch"),
        example="Camden Site",
    ),
    FieldSpec(
        key="serial_number",
        label="Serial Number",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("serial", "serial no", "s/n"),
        example="WF-2231-77",
    ),
    FieldSpec(
        key="manufacturer",
        label="Manufacturer",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("make", "brand"),
        example="Foster",
    ),
    FieldSpec(
        key="model",
        label="Model",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("model number", "model no"),
        example="EP700H",
    ),
    FieldSpec(
        key="install_date",
        label="Install Date",
        type=FieldType.DATE,
        validate=validate_date,
        synonyms=synonyms("installed", "installation date", "date installed"),
        example="12/09/2022",
    ),
    FieldSpec(
        key="warranty_end",
        label="Warranty End",
        type=FieldType.DATE,
        validate=validate_date,
        synonyms=synonyms("warranty expiry", "warranty", "warranty until"),
        example="12/09/2025",
        inferable=False,
    ),
    FieldSpec(
        key="contractor_email",
        label="Contractor Email",
        type=FieldType.EMAIL,
        validate=validate_email,
        synonyms=synonyms("contractor", "service contact", "engineer email"),
        example="service@coolfix.example.com",
    ),
    FieldSpec(
        key="notes",
        label="Notes",
        type=FieldType.STRING,
        validate=validate_string,
        synonyms=synonyms("comments", "remarks"),
        example="Annual service due in March",
    ),
)

ASSETS_CATALOG = FieldCatalog("assets", ASSET_FIELDS, identity_field="serial_number")
