from __future__ import annotations

import json

import jsonschema
import pytest

from bulk_import.services.executor import RESPONSE_SCHEMA_PATH


@pytest.fixture(scope="module")
def schema():
    return json.loads(RESPONSE_SCHEMA_PATH.read_text(encoding="utf-8"))


@pytest.mark.parametrize(
    "payload",
    [
        {"success": True, "created": 3, "skipped": 0, "failed": 0},
        {"success": True, "created": 1, "skipped": 1, "failed": 1,
         "errors": [{"rowIndex": 2, "message": "duplicate key"}]},
        {"success": False, "created": 0, "skipped": 0, "failed": 0, "error": "tenant locked"},
    ],
)
def test_accepted_responses(schema, payload):
    jsonschema.validate(payload, schema)


@pytest.mark.parametrize(
    "payload",
    [
        {"success": True},
        {"success": "yes", "created": 1, "skipped": 0, "failed": 0},
        {"success": True, "created": -1, "skipped": 0, "failed": 0},
        {"success": True, "created": 1, "skipped": 0, "failed": 1, "errors": [{"message": "x"}]},
        [],
    ],
)
def test_rejected_responses(schema, payload):
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(payload, schema)
