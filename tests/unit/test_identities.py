from __future__ import annotations

from unittest.mock import MagicMock

from bulk_import.db.identities import load_existing_identities


def test_loads_values_scoped_to_tenant():
    cur = MagicMock()
    cur.fetchall.return_value = [("ana@x.com",), ("Ben@X.com",)]
    values = load_existing_identities(cur, "profiles", "email", tenant_column="company_id", tenant_id="acme")
    assert values == ["ana@x.com", "Ben@X.com"]
    query, params = cur.execute.call_args.args
    assert params == ["acme"]
    assert "company_id" in repr(query)


def test_without_tenant_column():
    cur = MagicMock()
    cur.fetchall.return_value = []
    assert load_existing_identities(cur, "assets.register", "serial_number") == []
    _, params = cur.execute.call_args.args
    assert params == []
