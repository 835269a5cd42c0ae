from __future__ import annotations

import io
from collections.abc import Iterable, Sequence

import pandas as pd

from ..models.field_spec import FieldSpec
from .validators import Validator, normalize_token

"""Field Catalog: ordered, immutable description of an import target's canonical fields.

A catalog is injected into the otherwise generic pipeline; supporting a new
bulk-import target (people, assets, contractors) means adding a catalog module,
not branching pipeline code.
"""

__all__ = [
    "CatalogError",
    "FieldCatalog",
    "synonyms",
]


class CatalogError(Exception):
    """Raised for inconsistent catalog definitions or unknown catalog/field names."""


class FieldCatalog:
    def __init__(self, name: str, fields: Sequence[FieldSpec], identity_field: str) -> None:
        self.name = name
        self._fields: tuple[FieldSpec, ...] = tuple(fields)
        self._by_key: dict[str, FieldSpec] = {}
        for spec in self._fields:
            if spec.key in self._by_key:
                raise CatalogError(f"catalog '{name}': duplicate field key '{spec.key}'")
            self._by_key[spec.key] = spec
        if identity_field not in self._by_key:
            raise CatalogError(f"catalog '{name}': identity field '{identity_field}' not defined")
        self.identity_field = identity_field
        for spec in self._fields:
            if spec.part_of is not None and spec.part_of not in self._by_key:
                raise CatalogError(
                    f"catalog '{name}': field '{spec.key}' is part of unknown field '{spec.part_of}'"
                )
        self._header_index = self._build_header_index()

    def _build_header_index(self) -> dict[str, str]:
        """Normalized key/label/synonym -> field key; spellings must not collide across fields."""
        index: dict[str, str] = {}
        for spec in self._fields:
            for spelling in (spec.key, spec.label, *spec.synonyms):
                token = normalize_token(spelling)
                if not token:
                    continue
                owner = index.setdefault(token, spec.key)
                if owner != spec.key:
                    raise CatalogError(
                        f"catalog '{self.name}': header spelling '{spelling}' claimed by "
                        f"both '{owner}' and '{spec.key}'"
                    )
        return index

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    def __iter__(self):
        return iter(self._fields)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> FieldSpec:
        try:
            return self._by_key[key]
        except KeyError:
            raise CatalogError(f"catalog '{self.name}': unknown field '{key}'") from None

    def synonyms_of(self, key: str) -> frozenset[str]:
        return self.get(key).synonyms

    def validator_of(self, key: str) -> Validator:
        return self.get(key).validate

    def required_fields(self) -> list[FieldSpec]:
        return [f for f in self._fields if f.required]

    def composed_parts(self, key: str) -> list[FieldSpec]:
        """Part fields (in catalog order) that compose into ``key``."""
        return [f for f in self._fields if f.part_of == key]

    def field_for_header(self, header: str) -> str | None:
        """Exact (normalized) lookup of a header against keys, labels and synonyms."""
        token = normalize_token(header)
        if not token:
            return None
        return self._header_index.get(token)

    def field_containing(
        self, header: str, exclude: Iterable[str] = (), min_length: int = 4
    ) -> str | None:
        """Field whose spelling appears inside the header ("Employee Email Address" -> email).

        Spellings shorter than ``min_length`` are ignored; the longest spelling wins.
        """
        token = normalize_token(header)
        skip = set(exclude)
        best_key, best_len = None, 0
        for spelling, key in self._header_index.items():
            if key in skip or len(spelling) < min_length or len(spelling) <= best_len:
                continue
            if spelling in token:
                best_key, best_len = key, len(spelling)
        return best_key

    def normalize_identity(self, value: str | None) -> str:
        return (value or "").strip().lower()

    def template_fields(self) -> list[FieldSpec]:
        return [f for f in self._fields if f.part_of is None]

    def generate_template(self) -> str:
        """Downloadable CSV: header row of labels and one example row.

        Built from the same FieldSpecs the validators come from, so the template
        can never drift out of sync with validation.
        """
        fields = self.template_fields()
        frame = pd.DataFrame(
            [[f.example for f in fields]],
            columns=[f.label for f in fields],
        )
        buf = io.StringIO()
        frame.to_csv(buf, index=False, lineterminator="\n")
        return buf.getvalue()


def synonyms(*spellings: str) -> frozenset[str]:
    """Helper for catalog modules: lowercase synonym set."""
    return frozenset(s.lower() for s in spellings)

