"""Field catalogs: declarative target schemas for bulk imports."""

from .assets import ASSETS_CATALOG
from .base import CatalogError, FieldCatalog
from .people import PEOPLE_CATALOG

__all__ = [
    "CatalogError",
    "FieldCatalog",
    "PEOPLE_CATALOG",
    "ASSETS_CATALOG",
    "CATALOGS",
    "get_catalog",
]

CATALOGS: dict[str, FieldCatalog] = {
    PEOPLE_CATALOG.name: PEOPLE_CATALOG,
    ASSETS_CATALOG.name: ASSETS_CATALOG,
}


def get_catalog(name: str) -> FieldCatalog:
    try:
        return CATALOGS[name]
    except KeyError:
        raise CatalogError(
            f"unknown catalog '{name}' (available: {', '.join(sorted(CATALOGS))})"
        ) from None
