from __future__ import annotations

import json

import httpx
import pytest

from bulk_import.services.executor import ImportSessionError
from bulk_import.services.http_commit import HttpCommitDestination

URL = "https://api.example.test/people/bulk-import"
REQUEST = {"tenant_id": "acme", "file": {"name": "f.csv", "size": 3}, "mappings": [], "rows": [{"email": "a@x.com"}]}


def _destination(handler, token=None) -> HttpCommitDestination:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpCommitDestination(URL, timeout=5, token=token, client=client)


def test_posts_json_and_returns_decoded_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"success": True, "created": 1, "skipped": 0, "failed": 0})

    payload = _destination(handler, token="s3cret").submit(REQUEST)
    assert payload["created"] == 1
    assert seen == {"method": "POST", "url": URL, "body": REQUEST, "auth": "Bearer s3cret"}


def test_no_token_no_auth_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "authorization" not in request.headers
        return httpx.Response(200, json={})

    assert _destination(handler).submit(REQUEST) == {}


@pytest.mark.parametrize("status", [400, 401, 500, 503])
def test_non_2xx_is_session_error(status):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="boom")

    with pytest.raises(ImportSessionError, match=str(status)):
        _destination(handler).submit(REQUEST)


def test_non_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(ImportSessionError, match="not valid JSON"):
        _destination(handler).submit(REQUEST)


def test_transport_error_and_timeout():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ImportSessionError, match="connection refused"):
        _destination(refuse).submit(REQUEST)

    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(ImportSessionError, match="timed out"):
        _destination(slow).submit(REQUEST)
