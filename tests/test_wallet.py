"""
Tests for WalletOrchestrator — the presentation boundary.

Test plan:
- End to end: connect (unfunded, "0") → fund ("10000.0000000") → send
  50 → Confirmed → balance "9949.9999900", explorer link
- connect failures map to WalletNotFound / AuthorizationDenied
- Operations without a session → NotConnected, no network calls
- disconnect clears address, balance and payment status; idempotent
- Funding rejection keeps the previous balance
- Failed sends carry the phase and the classified error
- format_balance / OperationResult.to_dict rendering
- from_config wires production clients
"""

import httpx
import pytest
from fakes import RECIPIENT, SAMPLE_NOW, SOURCE, FakeFaucet, FakeLedger, FakeSigningProvider

from stellar_pay.config import TESTNET, NetworkConfig
from stellar_pay.errors import ErrorCode, PaymentError
from stellar_pay.faucet import FriendbotClient
from stellar_pay.ledger.horizon_client import HorizonClient
from stellar_pay.phases import PaymentPhase
from stellar_pay.signing import WalletBridgeProvider
from stellar_pay.wallet import (
    FUNDED_MESSAGE,
    OperationResult,
    WalletOrchestrator,
    format_balance,
)


def _wallet(
    ledger: FakeLedger | None = None,
    provider: FakeSigningProvider | None = None,
    faucet: FakeFaucet | None = None,
) -> tuple[WalletOrchestrator, FakeLedger]:
    ledger = ledger or FakeLedger()
    wallet = WalletOrchestrator(
        provider or FakeSigningProvider(),
        ledger,
        faucet or FakeFaucet(ledger),
        TESTNET,
        clock=lambda: SAMPLE_NOW,
        now_fn=lambda: "2026-01-01T00:00:00+00:00",
    )
    return wallet, ledger


# =========================================================================
# End to end
# =========================================================================


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_connect_fund_send(self) -> None:
        ledger = FakeLedger()
        ledger.add_account(RECIPIENT, "1")
        wallet, _ = _wallet(ledger)

        connected = await wallet.connect()
        assert connected.ok
        assert connected.address == SOURCE
        assert connected.balance == "0"
        assert connected.message == f"Wallet connected: {SOURCE[:6]}...{SOURCE[-6:]}"

        funded = await wallet.request_funding()
        assert funded.ok
        assert funded.message == FUNDED_MESSAGE
        assert funded.balance == "10000.0000000"
        assert wallet.balance == "10000.0000000"

        sent = await wallet.send(RECIPIENT, "50")
        assert sent.ok
        assert sent.phase == PaymentPhase.CONFIRMED
        assert sent.message == "Transaction successful!"
        assert sent.tx_hash is not None
        assert sent.explorer_url == TESTNET.tx_link(sent.tx_hash)
        assert sent.balance == "9949.9999900"
        assert wallet.balance == "9949.9999900"
        assert wallet.status is not None
        assert wallet.status.phase == PaymentPhase.CONFIRMED
        assert not wallet.busy


# =========================================================================
# connect / disconnect
# =========================================================================


class TestConnect:
    @pytest.mark.asyncio
    async def test_wallet_not_found(self) -> None:
        wallet, ledger = _wallet(provider=FakeSigningProvider(present=False))

        result = await wallet.connect()

        assert not result.ok
        assert result.error == ErrorCode.WALLET_NOT_FOUND
        assert wallet.address is None
        assert ledger.call_count == 0

    @pytest.mark.asyncio
    async def test_authorization_denied(self) -> None:
        wallet, _ = _wallet(provider=FakeSigningProvider(access_error="User declined access"))
        result = await wallet.connect()
        assert result.error == ErrorCode.AUTHORIZATION_DENIED
        assert result.message == "User declined access"

    @pytest.mark.asyncio
    async def test_ledger_down_still_connects(self) -> None:
        ledger = FakeLedger(load_should_raise=httpx.ConnectError("refused"))
        wallet, _ = _wallet(ledger)

        result = await wallet.connect()

        assert result.ok
        assert result.balance == "0"


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_clears_everything(self) -> None:
        ledger = FakeLedger()
        ledger.add_account(SOURCE)
        ledger.add_account(RECIPIENT)
        wallet, _ = _wallet(ledger)
        await wallet.connect()
        await wallet.send(RECIPIENT, "1")

        result = wallet.disconnect()

        assert result.ok
        assert wallet.address is None
        assert wallet.balance is None
        assert wallet.status is None

    def test_idempotent(self) -> None:
        wallet, _ = _wallet()
        assert wallet.disconnect().ok
        assert wallet.disconnect().ok


# =========================================================================
# Operations without a session
# =========================================================================


class TestNotConnected:
    @pytest.mark.asyncio
    async def test_fetch_balance(self) -> None:
        wallet, ledger = _wallet()
        result = await wallet.fetch_balance()
        assert result.error == ErrorCode.NOT_CONNECTED
        assert ledger.call_count == 0

    @pytest.mark.asyncio
    async def test_request_funding(self) -> None:
        ledger = FakeLedger()
        faucet = FakeFaucet(ledger)
        wallet, _ = _wallet(ledger, faucet=faucet)

        result = await wallet.request_funding()

        assert result.error == ErrorCode.NOT_CONNECTED
        assert faucet.calls == []

    @pytest.mark.asyncio
    async def test_send(self) -> None:
        wallet, ledger = _wallet()
        result = await wallet.send(RECIPIENT, "10")
        assert result.error == ErrorCode.NOT_CONNECTED
        assert result.phase == PaymentPhase.FAILED
        assert ledger.call_count == 0

    @pytest.mark.asyncio
    async def test_after_disconnect(self) -> None:
        ledger = FakeLedger()
        ledger.add_account(SOURCE)
        wallet, _ = _wallet(ledger)
        await wallet.connect()
        wallet.disconnect()

        result = await wallet.send(RECIPIENT, "10")

        assert result.error == ErrorCode.NOT_CONNECTED


# =========================================================================
# Balance / funding / send results
# =========================================================================


class TestOperations:
    @pytest.mark.asyncio
    async def test_fetch_balance(self) -> None:
        ledger = FakeLedger()
        ledger.add_account(SOURCE, "12.5")
        wallet, _ = _wallet(ledger)
        await wallet.connect()

        ledger.accounts[SOURCE]["balance"] += 1
        result = await wallet.fetch_balance()

        assert result.ok
        assert result.message == "Balance updated"
        assert result.balance == "13.5000000"

    @pytest.mark.asyncio
    async def test_funding_rejected_keeps_balance(self) -> None:
        ledger = FakeLedger()
        ledger.add_account(SOURCE, "7")
        wallet, _ = _wallet(ledger)
        await wallet.connect()

        result = await wallet.request_funding()

        assert not result.ok
        assert result.error == ErrorCode.FUNDING_FAILED
        assert result.message.startswith("createAccountAlreadyExist")
        assert result.reason == "400"
        assert result.balance == "7.0000000"

    @pytest.mark.asyncio
    async def test_failed_send_reports_reason(self) -> None:
        ledger = FakeLedger()
        ledger.add_account(SOURCE, "5")
        ledger.add_account(RECIPIENT)
        wallet, _ = _wallet(ledger)
        await wallet.connect()

        result = await wallet.send(RECIPIENT, "10")

        assert not result.ok
        assert result.phase == PaymentPhase.FAILED
        assert result.error == ErrorCode.SUBMISSION_REJECTED
        assert result.reason == "op_underfunded"
        assert result.tx_hash is None
        assert wallet.balance == "5.0000000"


# =========================================================================
# Rendering
# =========================================================================


class TestFormatBalance:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (None, "0.00"),
            ("0", "0.00"),
            ("10000.0000000", "10,000.00"),
            ("9949.9999900", "9,949.99999"),
            ("1234567.1234567", "1,234,567.1234567"),
            ("0.5", "0.50"),
            ("garbage", "garbage"),
        ],
    )
    def test_format(self, amount: str | None, expected: str) -> None:
        assert format_balance(amount) == expected


class TestOperationResult:
    def test_failure_from_error(self) -> None:
        error = PaymentError(ErrorCode.SIGNING_REJECTED, "User declined", reason="declined")
        result = OperationResult.failure(error, phase=PaymentPhase.FAILED)
        assert result.to_dict() == {
            "ok": False,
            "message": "User declined",
            "error": "SigningRejected",
            "reason": "declined",
            "phase": "Failed",
        }

    def test_success_omits_empty_fields(self) -> None:
        assert OperationResult(ok=True, message="Wallet disconnected").to_dict() == {
            "ok": True,
            "message": "Wallet disconnected",
        }


class TestFromConfig:
    def test_wires_production_clients(self) -> None:
        config = NetworkConfig(horizon_url="http://localhost:8000", http_timeout_s=5.0)
        wallet = WalletOrchestrator.from_config(config)

        assert wallet.config is config
        assert isinstance(wallet.session._provider, WalletBridgeProvider)
        assert isinstance(wallet._pipeline._ledger, HorizonClient)
        assert wallet._pipeline._ledger.url == "http://localhost:8000"
        assert isinstance(wallet._funding._faucet, FriendbotClient)
        assert wallet.address is None

    def test_defaults_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STELLAR_PAY_TX_TIMEOUT", "90")
        assert WalletOrchestrator.from_config().config.tx_timeout_s == 90
