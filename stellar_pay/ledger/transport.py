"""
HTTP transport protocol for ledger, faucet and wallet-bridge calls.

The clients depend on this protocol, not on httpx directly, so the HTTP
layer can be swapped for test fakes without touching response parsing.

Unlike a JSON-RPC transport, non-2xx statuses are NOT raised: Horizon
and Friendbot put meaningful verdicts in 400/404 bodies. Only failures
that produced no HTTP response (connection refused, timeout, TLS) raise.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeTransport (tests, returns canned responses)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx


@dataclass(frozen=True)
class HttpResponse:
    """Status plus decoded JSON body.

    Attributes:
        status_code: HTTP status.
        body: Decoded JSON object. None when the body was empty, not
            JSON, or JSON but not an object.
    """

    status_code: int
    body: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class HttpTransport(Protocol):
    """Async transport for the few HTTP shapes the clients need."""

    async def get(self, url: str, params: dict[str, str] | None = None) -> HttpResponse:
        """Send a GET request.

        Raises:
            Exception: On transport-level failures only.
        """
        ...

    async def post(
        self,
        url: str,
        *,
        data: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> HttpResponse:
        """Send a POST request with a form body or a JSON body.

        Raises:
            Exception: On transport-level failures only.
        """
        ...


def _decode_body(response: httpx.Response) -> dict[str, Any] | None:
    if not response.content:
        return None
    try:
        decoded = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(decoded, dict):
        return None
    return decoded


class HttpxTransport:
    """Default transport using httpx.AsyncClient (one client per call)."""

    def __init__(self, timeout: float = 30.0, headers: dict[str, str] | None = None) -> None:
        self._timeout = timeout
        self._headers = {"Accept": "application/json", **(headers or {})}

    async def get(self, url: str, params: dict[str, str] | None = None) -> HttpResponse:
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers) as client:
            response = await client.get(url, params=params)
            return HttpResponse(status_code=response.status_code, body=_decode_body(response))

    async def post(
        self,
        url: str,
        *,
        data: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> HttpResponse:
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers) as client:
            response = await client.post(url, data=data, json=json_body)
            return HttpResponse(status_code=response.status_code, body=_decode_body(response))
