"""
Test-funding faucet boundary.

Friendbot credits a fixed amount of testnet currency to an address with
``GET <friendbot>?addr=<account id>``. A second request for an already
funded account is rejected with a 400 problem document; its ``detail``
is the authoritative explanation and is surfaced unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from stellar_pay.ledger.transport import HttpTransport, HttpxTransport


@dataclass(frozen=True)
class FundingResult:
    """Result of a faucet request.

    Attributes:
        funded: Whether the faucet reported success.
        status_code: HTTP status of the faucet response.
        detail: Faucet's own ``detail`` message on failure, if any.
    """

    funded: bool
    status_code: int
    detail: str | None = None


@runtime_checkable
class FaucetClient(Protocol):
    async def fund(self, account_id: str) -> FundingResult:
        """Request test funds. Transport failures raise."""
        ...


class FriendbotClient:
    """FaucetClient for Stellar's Friendbot."""

    def __init__(self, url: str, transport: HttpTransport | None = None) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        return self._url

    async def fund(self, account_id: str) -> FundingResult:
        response = await self._transport.get(self._url, params={"addr": account_id})
        if response.ok:
            return FundingResult(funded=True, status_code=response.status_code)

        detail = None
        if response.body is not None:
            raw = response.body.get("detail")
            if isinstance(raw, str) and raw:
                detail = raw
        return FundingResult(funded=False, status_code=response.status_code, detail=detail)
