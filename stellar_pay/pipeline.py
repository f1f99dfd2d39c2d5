"""
Payment pipeline — build, sign, submit, confirm.

One call to ``send()`` does:
    1. Validating: session bound, request well-formed. No network.
    2. Building: load source account, build unsigned envelope.
    3. AwaitingSignature: session signs with the pinned network.
    4. Submitting: submit signed envelope to the ledger.
    5. Confirmed with the transaction hash, or Failed with a classified
       PaymentError from whichever stage stopped the run.

No loops. No retries. No balance refresh: the caller re-syncs after
observing Confirmed.

One run at a time per pipeline. The busy flag is set before the first
suspension point, so a second ``send()`` issued while the first is
suspended gets PIPELINE_BUSY and leaves the active run untouched.
Overlapping runs would race for the same source sequence number.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from stellar_pay.config import NetworkConfig
from stellar_pay.errors import (
    ErrorCode,
    PaymentError,
    classify_exception,
    classify_rejection,
)
from stellar_pay.ledger.client import LedgerClient
from stellar_pay.ledger.tx import build_payment_envelope
from stellar_pay.phases import OperationStatus, PaymentPhase, PaymentRun, StatusListener
from stellar_pay.session import SessionManager, short_address
from stellar_pay.validation import PaymentRequest

logger = logging.getLogger(__name__)

PIPELINE_BUSY_MESSAGE = "A payment is already in progress"


@dataclass(frozen=True)
class PaymentOutcome:
    """Terminal result of one ``send()`` call.

    Attributes:
        phase: CONFIRMED or FAILED.
        tx_hash: Settlement hash when CONFIRMED.
        error: Classified error when FAILED.
        history: Phases the run passed through, starting at IDLE.
            Empty for a PIPELINE_BUSY rejection (no run was started).
        request: The accepted request, once validation passed.
    """

    phase: PaymentPhase
    tx_hash: str | None = None
    error: PaymentError | None = None
    history: tuple[PaymentPhase, ...] = ()
    request: PaymentRequest | None = None

    @property
    def confirmed(self) -> bool:
        return self.phase == PaymentPhase.CONFIRMED


class PaymentPipeline:
    """Drives payment runs for one session.

    Args:
        session: Session whose bound address pays and signs.
        ledger: Ledger client for account loads and submission.
        config: Network constants (passphrase, base fee, timeout).
        listener: Called with every OperationStatus change.
        clock: Unix-time source for the validity window. Inject for tests.
        sign_timeout_s: Client-side give-up for the signature wait.
            Defaults to the transaction validity window.
    """

    def __init__(
        self,
        session: SessionManager,
        ledger: LedgerClient,
        config: NetworkConfig,
        *,
        listener: StatusListener | None = None,
        clock: Callable[[], float] | None = None,
        sign_timeout_s: float | None = None,
    ) -> None:
        self._session = session
        self._ledger = ledger
        self._config = config
        self._listener = listener
        self._clock = clock or time.time
        self._sign_timeout_s = (
            sign_timeout_s if sign_timeout_s is not None else float(config.tx_timeout_s)
        )
        self._busy = False
        self._run: PaymentRun | None = None

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def status(self) -> OperationStatus | None:
        """Status of the latest run, None before the first run."""
        return self._run.status if self._run is not None else None

    def clear(self) -> None:
        """Forget the latest run's status. Does not affect an active run."""
        if not self._busy:
            self._run = None

    async def send(self, recipient: str | None, amount: str | None) -> PaymentOutcome:
        """Run one payment to a terminal phase.

        Never raises for stage failures; the outcome carries them.
        """
        if self._busy:
            return PaymentOutcome(
                phase=PaymentPhase.FAILED,
                error=PaymentError(ErrorCode.PIPELINE_BUSY, PIPELINE_BUSY_MESSAGE),
            )

        self._busy = True
        run = PaymentRun(self._listener)
        self._run = run
        try:
            return await self._drive(run, recipient, amount)
        finally:
            self._busy = False

    # -----------------------------------------------------------------
    # Stages
    # -----------------------------------------------------------------

    async def _drive(
        self, run: PaymentRun, recipient: str | None, amount: str | None
    ) -> PaymentOutcome:
        # 1. Validating
        run.advance(PaymentPhase.VALIDATING)
        try:
            binding = self._session.require()
            request = PaymentRequest.create(recipient, amount)
        except PaymentError as exc:
            return self._fail(run, exc)

        # 2. Building
        run.advance(PaymentPhase.BUILDING)
        try:
            self._session.ensure_current(binding)
            source = await self._ledger.load_account(binding.address)
            self._session.ensure_current(binding)
            envelope = build_payment_envelope(
                source,
                request.recipient,
                request.amount,
                network_passphrase=self._config.network_passphrase,
                base_fee=self._config.base_fee,
                timeout_s=self._config.tx_timeout_s,
                now=int(self._clock()),
            )
        except Exception as exc:
            return self._fail(run, classify_exception(exc, ErrorCode.LEDGER_UNAVAILABLE), request)

        # 3. AwaitingSignature
        run.advance(PaymentPhase.AWAITING_SIGNATURE)
        try:
            signed_xdr = await asyncio.wait_for(
                self._session.sign(envelope.xdr, binding),
                timeout=self._sign_timeout_s,
            )
        except TimeoutError:
            error = PaymentError(
                ErrorCode.SIGNING_REJECTED,
                f"No signature received within {self._sign_timeout_s:g}s",
            )
            return self._fail(run, error, request)
        except Exception as exc:
            return self._fail(run, classify_exception(exc, ErrorCode.SIGNING_REJECTED), request)

        # 4. Submitting
        run.advance(PaymentPhase.SUBMITTING)
        try:
            self._session.ensure_current(binding)
            result = await self._ledger.submit(signed_xdr)
        except Exception as exc:
            return self._fail(run, classify_exception(exc, ErrorCode.LEDGER_UNAVAILABLE), request)

        if not result.accepted or not result.tx_hash:
            error = classify_rejection(
                transaction_code=result.transaction_code,
                operation_codes=result.operation_codes,
                detail=result.detail,
            )
            return self._fail(run, error, request)

        # 5. Confirmed
        run.advance(PaymentPhase.CONFIRMED, tx_hash=result.tx_hash)
        logger.info(
            "payment of %s to %s confirmed: %s",
            request.amount,
            short_address(request.recipient),
            result.tx_hash,
        )
        return PaymentOutcome(
            phase=PaymentPhase.CONFIRMED,
            tx_hash=result.tx_hash,
            history=run.history,
            request=request,
        )

    def _fail(
        self,
        run: PaymentRun,
        error: PaymentError,
        request: PaymentRequest | None = None,
    ) -> PaymentOutcome:
        stage = run.phase
        run.fail(error)
        logger.warning("payment failed during %s (%s): %s", stage, error.code, error.message)
        return PaymentOutcome(
            phase=PaymentPhase.FAILED,
            error=error,
            history=run.history,
            request=request,
        )
