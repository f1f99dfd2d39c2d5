"""
Horizon client — real network implementation of LedgerClient.

Translates Horizon REST responses into AccountState/SubmitResult.
Uses an injectable transport (HttpTransport) so the HTTP layer can be
swapped for test fakes without changing parsing logic.

No retry loops. No secrets. No ledger logic beyond response parsing.

Response parsing targets Horizon conventions:
    - GET /accounts/{id}: 200 with ``sequence`` and ``balances``,
      404 problem document when the account does not exist.
    - POST /transactions (form field ``tx``): 200 with ``hash``,
      400 problem document with ``extras.result_codes`` on rejection,
      504 when the transaction was not ingested in time.
"""

from __future__ import annotations

import logging
from typing import Any

from stellar_pay.errors import ServiceResponseError
from stellar_pay.ledger.client import AccountState, Balance, SubmitResult
from stellar_pay.ledger.transport import HttpResponse, HttpTransport, HttpxTransport
from stellar_pay.schema import (
    ACCOUNT_SCHEMA,
    RESULT_CODES_SCHEMA,
    SUBMIT_SUCCESS_SCHEMA,
    is_valid,
)

logger = logging.getLogger(__name__)


class HorizonClient:
    """Horizon REST client implementing the LedgerClient protocol.

    Args:
        url: Horizon base URL (e.g. "https://horizon-testnet.stellar.org").
        transport: Injectable HTTP transport. Defaults to HttpxTransport.
    """

    def __init__(self, url: str, transport: HttpTransport | None = None) -> None:
        self._url = url.rstrip("/")
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        """The Horizon base URL."""
        return self._url

    # -----------------------------------------------------------------
    # LedgerClient protocol methods
    # -----------------------------------------------------------------

    async def load_account(self, account_id: str) -> AccountState:
        """Load an account via ``GET /accounts/{id}``.

        Transport exceptions propagate to the caller.
        """
        response = await self._transport.get(f"{self._url}/accounts/{account_id}")
        return _parse_account_response(account_id, response)

    async def submit(self, signed_envelope_xdr: str) -> SubmitResult:
        """Submit a signed envelope via ``POST /transactions``.

        Transport exceptions propagate to the caller.
        """
        response = await self._transport.post(
            f"{self._url}/transactions",
            data={"tx": signed_envelope_xdr},
        )
        return _parse_submit_response(response)


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _problem_detail(body: dict[str, Any] | None) -> str | None:
    if not body:
        return None
    detail = body.get("detail") or body.get("title")
    return detail if isinstance(detail, str) else None


def _parse_account_response(account_id: str, response: HttpResponse) -> AccountState:
    """Parse a Horizon account response into AccountState.

    Raises:
        ServiceResponseError: On any status other than 200/404, or a 200
            body that does not match the account schema.
    """
    if response.status_code == 404:
        return AccountState(account_id=account_id, found=False)

    if response.status_code != 200:
        raise ServiceResponseError(
            _problem_detail(response.body) or f"account query failed ({response.status_code})",
            status_code=response.status_code,
        )

    body = response.body
    if body is None or not is_valid(body, ACCOUNT_SCHEMA):
        raise ServiceResponseError(
            "malformed account response", status_code=response.status_code
        )

    balances = tuple(
        Balance(asset_type=line["asset_type"], balance=line["balance"])
        for line in body["balances"]
    )
    return AccountState(
        account_id=account_id,
        found=True,
        sequence=int(body["sequence"]),
        balances=balances,
    )


def _parse_submit_response(response: HttpResponse) -> SubmitResult:
    """Parse a Horizon transaction submission response into SubmitResult.

    Handles:
        - Applied transaction (200 with hash)
        - Ledger rejection (400 with result codes)
        - Missing/malformed result codes (rejection with detail only)

    Raises:
        ServiceResponseError: For 5xx/timeout/rate-limit statuses and
            malformed success bodies, where the ledger gave no verdict.
    """
    body = response.body

    if response.status_code == 200:
        if body is None or not is_valid(body, SUBMIT_SUCCESS_SCHEMA):
            raise ServiceResponseError("malformed submission response", status_code=200)
        if body.get("successful") is False:
            return SubmitResult(
                accepted=False,
                tx_hash=body["hash"],
                status_code=200,
                detail="transaction included but not successful",
            )
        return SubmitResult(accepted=True, tx_hash=body["hash"], status_code=200)

    if response.status_code != 400:
        raise ServiceResponseError(
            _problem_detail(body) or f"transaction submission failed ({response.status_code})",
            status_code=response.status_code,
        )

    transaction_code: str | None = None
    operation_codes: tuple[str, ...] = ()
    tx_hash: str | None = None

    extras = body.get("extras") if body else None
    if isinstance(extras, dict):
        result_codes = extras.get("result_codes")
        if isinstance(result_codes, dict) and is_valid(result_codes, RESULT_CODES_SCHEMA):
            transaction_code = result_codes.get("transaction")
            operation_codes = tuple(result_codes.get("operations", ()))
        elif result_codes is not None:
            logger.debug("ignoring malformed result_codes in rejection")
        extra_hash = extras.get("hash")
        if isinstance(extra_hash, str):
            tx_hash = extra_hash

    return SubmitResult(
        accepted=False,
        tx_hash=tx_hash,
        status_code=400,
        transaction_code=transaction_code,
        operation_codes=operation_codes,
        detail=_problem_detail(body),
    )
