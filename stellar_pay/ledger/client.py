"""
Ledger client protocol — the network boundary.

Defines the interface the balance synchronizer and the payment pipeline
depend on, not a concrete implementation. This keeps both testable and
prevents ``httpx.get`` from creeping into sequencing logic.

Concrete implementations:
    - HorizonClient (real)
    - FakeLedger (tests)

The protocol has exactly two methods:
    - load_account(address) → AccountState
    - submit(signed_envelope_xdr) → SubmitResult

Both return boring frozen dataclasses. No exceptions for "expected"
failures (account missing, transaction rejected); those are captured
in the result objects. Transport failures and unusable responses raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

NATIVE_ASSET_TYPE = "native"


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class Balance:
    """One balance line of an account."""

    asset_type: str
    balance: str


@dataclass(frozen=True)
class AccountState:
    """Result of loading an account from the ledger.

    Attributes:
        account_id: The queried account id.
        found: Whether the account exists on the ledger.
        sequence: Current sequence number. 0 when not found.
        balances: All balance lines, native and issued.
    """

    account_id: str
    found: bool
    sequence: int = 0
    balances: tuple[Balance, ...] = field(default_factory=tuple)

    def native_balance(self) -> str | None:
        """Decimal string of the native balance, None if absent."""
        for line in self.balances:
            if line.asset_type == NATIVE_ASSET_TYPE:
                return line.balance
        return None


@dataclass(frozen=True)
class SubmitResult:
    """Result of submitting a signed envelope.

    Attributes:
        accepted: Whether the ledger applied the transaction.
        tx_hash: Transaction hash (64 hex chars) on success; on rejection
            only if the service reported one.
        status_code: HTTP status of the submission response.
        transaction_code: ``extras.result_codes.transaction`` on rejection.
        operation_codes: ``extras.result_codes.operations`` on rejection.
        detail: Problem detail or title for diagnostics.
    """

    accepted: bool
    tx_hash: str | None = None
    status_code: int | None = None
    transaction_code: str | None = None
    operation_codes: tuple[str, ...] = ()
    detail: str | None = None


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class LedgerClient(Protocol):
    """Interface for ledger network operations.

    Methods are async because network I/O is inherently asynchronous.
    """

    async def load_account(self, account_id: str) -> AccountState:
        """Load sequence number and balances for an account.

        Returns:
            AccountState with ``found=False`` when the account does not
            exist.

        Raises:
            Exception: When the ledger service is unreachable or returns
                an unusable response.
        """
        ...

    async def submit(self, signed_envelope_xdr: str) -> SubmitResult:
        """Submit a signed transaction envelope.

        Returns:
            SubmitResult with acceptance status and rejection codes.

        Raises:
            Exception: When the ledger service is unreachable or returns
                an unusable response (including 5xx / timeout statuses).
        """
        ...
