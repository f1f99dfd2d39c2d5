"""
Test funding requester.

Funding is reported only after the balance has been re-fetched, so a
caller never shows "funded" next to a stale balance. The faucet's own
rejection (already funded, rate limited) is surfaced, never retried.
"""

from __future__ import annotations

import logging

from stellar_pay.balance import BalanceSynchronizer
from stellar_pay.errors import ErrorCode, PaymentError
from stellar_pay.faucet import FaucetClient
from stellar_pay.session import short_address

logger = logging.getLogger(__name__)


class FundingRequester:
    def __init__(self, faucet: FaucetClient, balances: BalanceSynchronizer) -> None:
        self._faucet = faucet
        self._balances = balances

    async def request_funding(self, address: str) -> str:
        """Fund ``address`` from the faucet and return the refreshed balance.

        Raises:
            PaymentError: FUNDING_FAILED with the faucet's detail message,
                or a status-derived message when it gave none.
        """
        try:
            result = await self._faucet.fund(address)
        except Exception as exc:
            raise PaymentError(
                ErrorCode.FUNDING_FAILED,
                f"Failed to fund account via Friendbot: {exc}",
            ) from exc

        if not result.funded:
            logger.warning(
                "faucet rejected %s with status %s", short_address(address), result.status_code
            )
            raise PaymentError(
                ErrorCode.FUNDING_FAILED,
                result.detail or f"Friendbot request failed ({result.status_code})",
                reason=str(result.status_code),
            )

        balance = await self._balances.fetch_balance(address)
        logger.info("funded %s, balance now %s", short_address(address), balance)
        return balance
