"""
Balance synchronizer.

Balance is advisory: the ledger re-validates funds at submission time,
so a failed query degrades to a "0" display instead of blocking. The
failure is still classified and logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from stellar_pay.errors import ErrorCode, classify_exception
from stellar_pay.ledger.client import LedgerClient
from stellar_pay.session import SessionManager, short_address

logger = logging.getLogger(__name__)

ZERO_BALANCE = "0"


def _default_now() -> str:
    """RFC3339 UTC timestamp."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S+00:00")


@dataclass(frozen=True)
class AccountBalance:
    """Last fetched native balance of one account."""

    address: str
    native_amount: str | None
    fetched_at: str


class BalanceSynchronizer:
    """Fetches and holds the native balance of the session's account.

    Args:
        ledger: Ledger client.
        session: When given, a fetch whose address is no longer bound
            by the time it completes is returned but not stored.
        now_fn: Callable returning RFC3339 timestamps. Inject for tests.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        session: SessionManager | None = None,
        now_fn: Callable[[], str] | None = None,
    ) -> None:
        self._ledger = ledger
        self._session = session
        self._now_fn = now_fn or _default_now
        self._current: AccountBalance | None = None

    @property
    def current(self) -> AccountBalance | None:
        return self._current

    def reset(self) -> None:
        self._current = None

    async def fetch_balance(self, address: str) -> str:
        """Return the native balance of ``address`` as a decimal string.

        Returns "0" when the account has no native entry, does not exist,
        or the query fails. Never raises for ledger failures.
        """
        try:
            state = await self._ledger.load_account(address)
        except Exception as exc:
            error = classify_exception(exc, ErrorCode.LEDGER_UNAVAILABLE)
            logger.warning(
                "balance fetch for %s degraded to zero (%s): %s",
                short_address(address),
                error.code,
                error.message,
            )
            amount = ZERO_BALANCE
        else:
            if not state.found:
                logger.info("account %s not found on ledger", short_address(address))
            amount = state.native_balance() or ZERO_BALANCE

        if self._session is not None and self._session.address != address:
            logger.debug("discarding balance for unbound account %s", short_address(address))
            return amount

        self._current = AccountBalance(
            address=address,
            native_amount=amount,
            fetched_at=self._now_fn(),
        )
        return amount
