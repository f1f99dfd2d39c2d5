"""
Payment run phases and the transition table.

    Idle → Validating → Building → AwaitingSignature → Submitting → Confirmed
     │        │            │              │                │
     └────────┴────────────┴──────────────┴────────────────┴──→ Failed

Confirmed and Failed are terminal. Transitions are data, not branches:
``TRANSITIONS`` maps every phase to its full successor set, and a
``PaymentRun`` refuses anything outside it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from stellar_pay.errors import PaymentError

logger = logging.getLogger(__name__)


class PaymentPhase(StrEnum):
    """Phase of a single payment run."""

    IDLE = "Idle"
    VALIDATING = "Validating"
    BUILDING = "Building"
    AWAITING_SIGNATURE = "AwaitingSignature"
    SUBMITTING = "Submitting"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]


TRANSITIONS: dict[PaymentPhase, frozenset[PaymentPhase]] = {
    PaymentPhase.IDLE: frozenset({PaymentPhase.VALIDATING, PaymentPhase.FAILED}),
    PaymentPhase.VALIDATING: frozenset({PaymentPhase.BUILDING, PaymentPhase.FAILED}),
    PaymentPhase.BUILDING: frozenset({PaymentPhase.AWAITING_SIGNATURE, PaymentPhase.FAILED}),
    PaymentPhase.AWAITING_SIGNATURE: frozenset({PaymentPhase.SUBMITTING, PaymentPhase.FAILED}),
    PaymentPhase.SUBMITTING: frozenset({PaymentPhase.CONFIRMED, PaymentPhase.FAILED}),
    PaymentPhase.CONFIRMED: frozenset(),
    PaymentPhase.FAILED: frozenset(),
}

# User-facing progress messages for the in-flight phases.
PHASE_MESSAGES: dict[PaymentPhase, str] = {
    PaymentPhase.VALIDATING: "Validating payment...",
    PaymentPhase.BUILDING: "Preparing transaction...",
    PaymentPhase.AWAITING_SIGNATURE: "Please sign the transaction in your wallet...",
    PaymentPhase.SUBMITTING: "Submitting to network...",
    PaymentPhase.CONFIRMED: "Transaction successful!",
}


def successors(phase: PaymentPhase) -> frozenset[PaymentPhase]:
    """Phases reachable from ``phase`` in one step."""
    return TRANSITIONS[phase]


def reachable(start: PaymentPhase = PaymentPhase.IDLE) -> frozenset[PaymentPhase]:
    """All phases reachable from ``start`` (inclusive)."""
    seen = {start}
    frontier = [start]
    while frontier:
        for nxt in TRANSITIONS[frontier.pop()]:
            if nxt not in seen:
                seen.add(nxt)
                frontier.append(nxt)
    return frozenset(seen)


class InvalidTransition(RuntimeError):
    """A run tried to move along an edge that is not in TRANSITIONS."""


# =========================================================================
# OperationStatus
# =========================================================================


@dataclass(frozen=True)
class OperationStatus:
    """What a presentation layer shows for the current run.

    One instance per phase change; a new run replaces it entirely.
    """

    phase: PaymentPhase
    message: str
    tx_hash: str | None = None
    error: PaymentError | None = None

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {"phase": str(self.phase), "message": self.message}
        if self.tx_hash is not None:
            result["tx_hash"] = self.tx_hash
        if self.error is not None:
            result["error"] = str(self.error.code)
            if self.error.reason is not None:
                result["reason"] = self.error.reason
        return result


StatusListener = Callable[[OperationStatus], None]


# =========================================================================
# PaymentRun
# =========================================================================


class PaymentRun:
    """Tracks one pipeline run through the transition table."""

    def __init__(self, listener: StatusListener | None = None) -> None:
        self._phase = PaymentPhase.IDLE
        self._history: list[PaymentPhase] = [PaymentPhase.IDLE]
        self._listener = listener
        self._status = OperationStatus(phase=PaymentPhase.IDLE, message="")

    @property
    def phase(self) -> PaymentPhase:
        return self._phase

    @property
    def history(self) -> tuple[PaymentPhase, ...]:
        return tuple(self._history)

    @property
    def status(self) -> OperationStatus:
        return self._status

    def advance(
        self,
        phase: PaymentPhase,
        *,
        tx_hash: str | None = None,
        error: PaymentError | None = None,
    ) -> OperationStatus:
        """Move to ``phase`` and publish the new status.

        Raises:
            InvalidTransition: If ``phase`` is not a successor of the
                current phase.
        """
        if phase not in TRANSITIONS[self._phase]:
            raise InvalidTransition(f"{self._phase} -> {phase} is not a valid transition")

        logger.debug("payment run %s -> %s", self._phase, phase)
        self._phase = phase
        self._history.append(phase)

        if error is not None:
            message = error.message
        else:
            message = PHASE_MESSAGES.get(phase, str(phase))
        self._status = OperationStatus(phase=phase, message=message, tx_hash=tx_hash, error=error)

        if self._listener is not None:
            try:
                self._listener(self._status)
            except Exception:
                # Observer errors never change the run.
                logger.exception("status listener failed on %s", phase)
        return self._status

    def fail(self, error: PaymentError) -> OperationStatus:
        return self.advance(PaymentPhase.FAILED, error=error)
