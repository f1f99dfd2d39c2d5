"""
Wallet orchestrator — the presentation boundary.

Composes the session, balance synchronizer, funding requester and
payment pipeline behind five calls:

    - ``connect()``          bind a wallet account, load its balance
    - ``disconnect()``       drop the binding and everything derived from it
    - ``fetch_balance()``    re-sync the displayed balance
    - ``request_funding()``  faucet credit, then balance re-sync
    - ``send()``             one payment run, then balance re-sync on success

Each returns an ``OperationResult`` a UI can render as-is: no call
raises for an expected failure, and every failure carries an
``ErrorCode`` from the closed taxonomy.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from stellar_pay.balance import BalanceSynchronizer
from stellar_pay.config import TESTNET, NetworkConfig
from stellar_pay.errors import ErrorCode, PaymentError
from stellar_pay.faucet import FaucetClient, FriendbotClient
from stellar_pay.funding import FundingRequester
from stellar_pay.ledger.client import LedgerClient
from stellar_pay.ledger.horizon_client import HorizonClient
from stellar_pay.ledger.transport import HttpxTransport
from stellar_pay.phases import OperationStatus, PaymentPhase, StatusListener
from stellar_pay.pipeline import PaymentPipeline
from stellar_pay.session import NOT_CONNECTED_MESSAGE, SessionManager, short_address
from stellar_pay.signing import SigningProvider, WalletBridgeProvider

logger = logging.getLogger(__name__)

FUNDED_MESSAGE = "Account funded! 10,000 testnet XLM added to your wallet."


def format_balance(amount: str | None) -> str:
    """Display form of a balance: grouped, 2 to 7 fraction digits."""
    if amount is None:
        return "0.00"
    try:
        value = Decimal(amount)
    except InvalidOperation:
        return amount
    integer, _, fraction = f"{value:,.7f}".partition(".")
    fraction = fraction.rstrip("0").ljust(2, "0")
    return f"{integer}.{fraction}"


@dataclass(frozen=True)
class OperationResult:
    """Tagged result of one orchestrator call.

    Attributes:
        ok: Whether the operation succeeded.
        message: User-facing message.
        error: Taxonomy entry when ``ok`` is False.
        reason: Most specific machine-readable reason, if any.
        phase: Terminal payment phase, for ``send()`` results.
        address: Bound address, for ``connect()`` results.
        balance: Native balance after the operation, when known.
        tx_hash: Settlement hash of a confirmed payment.
        explorer_url: Link to the confirmed transaction.
    """

    ok: bool
    message: str
    error: ErrorCode | None = None
    reason: str | None = None
    phase: PaymentPhase | None = None
    address: str | None = None
    balance: str | None = None
    tx_hash: str | None = None
    explorer_url: str | None = None

    @classmethod
    def failure(cls, error: PaymentError, **fields: object) -> OperationResult:
        return cls(
            ok=False,
            message=error.message,
            error=error.code,
            reason=error.reason,
            **fields,  # type: ignore[arg-type]
        )

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {"ok": self.ok, "message": self.message}
        for key in ("error", "reason", "phase", "address", "balance", "tx_hash", "explorer_url"):
            value = getattr(self, key)
            if value is not None:
                result[key] = str(value)
        return result


class WalletOrchestrator:
    """One wallet session and everything hanging off it.

    Args:
        provider: External signing authority.
        ledger: Ledger client.
        faucet: Test-funding faucet.
        config: Network configuration. Defaults to testnet.
        listener: Receives every payment OperationStatus change.
        clock: Unix-time source for transaction validity windows.
        now_fn: RFC3339 timestamp source for balance records.
        sign_timeout_s: Client-side give-up for signatures.
    """

    def __init__(
        self,
        provider: SigningProvider,
        ledger: LedgerClient,
        faucet: FaucetClient,
        config: NetworkConfig = TESTNET,
        *,
        listener: StatusListener | None = None,
        clock: Callable[[], float] | None = None,
        now_fn: Callable[[], str] | None = None,
        sign_timeout_s: float | None = None,
    ) -> None:
        self._config = config
        self._session = SessionManager(provider, config.network_passphrase)
        self._balances = BalanceSynchronizer(ledger, self._session, now_fn=now_fn)
        self._funding = FundingRequester(faucet, self._balances)
        self._pipeline = PaymentPipeline(
            self._session,
            ledger,
            config,
            listener=listener,
            clock=clock,
            sign_timeout_s=sign_timeout_s,
        )

    @classmethod
    def from_config(
        cls,
        config: NetworkConfig | None = None,
        *,
        listener: StatusListener | None = None,
    ) -> WalletOrchestrator:
        """Wire the production clients for ``config`` (env-derived if None)."""
        config = config or NetworkConfig.from_env()
        transport = HttpxTransport(timeout=config.http_timeout_s)
        return cls(
            WalletBridgeProvider(config.wallet_bridge_url, transport),
            HorizonClient(config.horizon_url, transport),
            FriendbotClient(config.friendbot_url, transport),
            config,
            listener=listener,
        )

    # -----------------------------------------------------------------
    # State for rendering
    # -----------------------------------------------------------------

    @property
    def config(self) -> NetworkConfig:
        return self._config

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def address(self) -> str | None:
        return self._session.address

    @property
    def balance(self) -> str | None:
        current = self._balances.current
        return current.native_amount if current is not None else None

    @property
    def status(self) -> OperationStatus | None:
        return self._pipeline.status

    @property
    def busy(self) -> bool:
        return self._pipeline.busy

    # -----------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------

    async def connect(self) -> OperationResult:
        try:
            address = await self._session.connect()
        except PaymentError as exc:
            logger.warning("wallet connect failed (%s): %s", exc.code, exc.message)
            return OperationResult.failure(exc)

        self._balances.reset()
        self._pipeline.clear()
        balance = await self._balances.fetch_balance(address)
        return OperationResult(
            ok=True,
            message=f"Wallet connected: {short_address(address)}",
            address=address,
            balance=balance,
        )

    def disconnect(self) -> OperationResult:
        """Drop the binding, balance and payment status. Idempotent."""
        self._session.disconnect()
        self._balances.reset()
        self._pipeline.clear()
        return OperationResult(ok=True, message="Wallet disconnected")

    def _target(self, address: str | None) -> str:
        if self._session.address is None:
            raise PaymentError(ErrorCode.NOT_CONNECTED, NOT_CONNECTED_MESSAGE)
        return address or self._session.address

    async def fetch_balance(self, address: str | None = None) -> OperationResult:
        """Re-sync the balance of ``address`` (default: the bound address)."""
        try:
            target = self._target(address)
        except PaymentError as exc:
            return OperationResult.failure(exc)
        balance = await self._balances.fetch_balance(target)
        return OperationResult(ok=True, message="Balance updated", address=target, balance=balance)

    async def request_funding(self, address: str | None = None) -> OperationResult:
        """Request faucet funds for ``address`` (default: the bound address)."""
        try:
            target = self._target(address)
            balance = await self._funding.request_funding(target)
        except PaymentError as exc:
            return OperationResult.failure(exc, balance=self.balance)
        return OperationResult(ok=True, message=FUNDED_MESSAGE, address=target, balance=balance)

    async def send(self, recipient: str | None, amount: str | None) -> OperationResult:
        """Run one payment; re-sync the balance if it confirmed."""
        outcome = await self._pipeline.send(recipient, amount)

        if not outcome.confirmed:
            assert outcome.error is not None
            return OperationResult.failure(outcome.error, phase=outcome.phase)

        assert outcome.tx_hash is not None
        balance = None
        if self._session.address is not None:
            balance = await self._balances.fetch_balance(self._session.address)
        return OperationResult(
            ok=True,
            message="Transaction successful!",
            phase=outcome.phase,
            balance=balance,
            tx_hash=outcome.tx_hash,
            explorer_url=self._config.tx_link(outcome.tx_hash),
        )
