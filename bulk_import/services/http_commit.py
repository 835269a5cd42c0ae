from __future__ import annotations

import logging
from typing import Any

import httpx

from .executor import ImportSessionError

"""HTTP commit destination: POSTs the commit request as JSON with httpx.

Every transport-level problem (connect error, timeout, non-2xx status, body
that is not JSON) is raised as ImportSessionError; the response body itself is
validated by the executor.
"""

logger = logging.getLogger(__name__)

__all__ = ["HttpCommitDestination", "DEFAULT_TIMEOUT_SECONDS"]

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpCommitDestination:
    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        token: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0))
        self.token = token
        self.client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": "bulk-import"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def submit(self, request: dict[str, Any]) -> Any:
        if self.client is not None:
            return self._post(self.client, request)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                return self._post(client, request)
        except ImportSessionError:
            raise
        except httpx.HTTPError as e:
            raise ImportSessionError(f"commit request to {self.url} failed: {e}") from e

    def _post(self, client: httpx.Client, request: dict[str, Any]) -> Any:
        logger.debug("POST %s rows=%d", self.url, len(request.get("rows", [])))
        try:
            response = client.post(
                self.url, json=request, headers=self._headers(), timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise ImportSessionError(f"commit request timed out after {self.timeout.read}s") from e
        except httpx.HTTPError as e:
            raise ImportSessionError(f"commit request to {self.url} failed: {e}") from e
        _raise_for_status(response)
        try:
            return response.json()
        except ValueError as e:
            raise ImportSessionError("commit response is not valid JSON") from e


def _raise_for_status(response: httpx.Response) -> None:
    status_code = response.status_code
    if status_code < 300:
        return
    detail = response.text.strip()[:200]
    if status_code in {401, 403}:
        raise ImportSessionError(f"commit not authorized (HTTP {status_code})")
    raise ImportSessionError(
        f"commit failed with HTTP {status_code}" + (f": {detail}" if detail else "")
    )
