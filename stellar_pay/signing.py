"""
Signing provider protocol — the secrets boundary.

The orchestrator never holds keys. It hands an unsigned envelope to a
``SigningProvider`` and gets back either a signed envelope or a refusal.
The provider is external and untrusted: it may be missing, locked,
switched to the wrong network, or the user may simply decline.

Concrete implementations:
    - WalletBridgeProvider (production, JSON-RPC to a local wallet bridge)
    - FakeSigningProvider (tests; refuses, errors or returns canned envelopes)

Bridge methods follow the Freighter API shapes:
    - isConnected → {"isConnected": bool}
    - requestAccess → {"address": "G..."} | {"error": "..."}
    - signTransaction(xdr, networkPassphrase, address)
        → {"signedTxXdr": "..."} | {"error": "..."}
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from stellar_pay.errors import ServiceResponseError
from stellar_pay.ledger.transport import HttpTransport, HttpxTransport
from stellar_pay.schema import JSONRPC_RESPONSE_SCHEMA, is_valid

logger = logging.getLogger(__name__)


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class AccessResult:
    """Result of an access request.

    Attributes:
        address: Account id the user granted. None on refusal.
        error: Provider's refusal/error message. None on success.
    """

    address: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SignResult:
    """Result of a signing request.

    Attributes:
        signed_envelope_xdr: Signed envelope, ready for submission.
            None (or empty) means the request did not succeed.
        error: Provider's refusal/error message. None on success.
    """

    signed_envelope_xdr: str | None = None
    error: str | None = None


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class SigningProvider(Protocol):
    """Interface to the external signing authority."""

    async def is_present(self) -> bool:
        """Whether the signing authority is installed and reachable."""
        ...

    async def request_access(self) -> AccessResult:
        """Ask the user to share an account. May prompt interactively."""
        ...

    async def sign_transaction(
        self,
        envelope_xdr: str,
        *,
        network_passphrase: str,
        address: str,
    ) -> SignResult:
        """Ask the user to sign ``envelope_xdr`` for ``network_passphrase``.

        Implementations must refuse rather than sign for a different
        network or account.
        """
        ...


# =========================================================================
# WalletBridgeProvider
# =========================================================================


class WalletBridgeProvider:
    """SigningProvider backed by a JSON-RPC wallet bridge.

    Args:
        url: Bridge JSON-RPC endpoint.
        transport: Injectable HTTP transport. Defaults to HttpxTransport.
    """

    def __init__(self, url: str, transport: HttpTransport | None = None) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def _call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": [params or {}],
            "id": next(self._ids),
        }
        response = await self._transport.post(self._url, json_body=payload)
        if not response.ok or response.body is None:
            raise ServiceResponseError(
                f"wallet bridge {method} failed ({response.status_code})",
                status_code=response.status_code,
            )
        if not is_valid(response.body, JSONRPC_RESPONSE_SCHEMA):
            raise ServiceResponseError(f"malformed wallet bridge response to {method}")

        error = response.body.get("error")
        if error is not None:
            message = error.get("message") if isinstance(error, dict) else str(error)
            return {"error": message or f"{method} failed"}
        result = response.body.get("result")
        return result if isinstance(result, dict) else {}

    async def is_present(self) -> bool:
        result = await self._call("isConnected")
        return bool(result.get("isConnected"))

    async def request_access(self) -> AccessResult:
        result = await self._call("requestAccess")
        if result.get("error"):
            return AccessResult(error=str(result["error"]))
        address = result.get("address")
        return AccessResult(address=address if isinstance(address, str) else None)

    async def sign_transaction(
        self,
        envelope_xdr: str,
        *,
        network_passphrase: str,
        address: str,
    ) -> SignResult:
        result = await self._call(
            "signTransaction",
            {
                "xdr": envelope_xdr,
                "networkPassphrase": network_passphrase,
                "address": address,
            },
        )
        if result.get("error"):
            return SignResult(error=str(result["error"]))
        signed = result.get("signedTxXdr")
        return SignResult(signed_envelope_xdr=signed if isinstance(signed, str) else None)
