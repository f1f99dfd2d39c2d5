"""
Ledger boundary for stellar-pay.

Public API:

    Protocol (for dependency injection):
        - ``LedgerClient`` — load account state, submit signed envelopes.

    Result types:
        - ``AccountState``, ``Balance``, ``SubmitResult``.

    Concrete client:
        - ``HorizonClient`` — Horizon REST implementation of LedgerClient.

    Transport:
        - ``HttpTransport`` — injectable transport protocol.
        - ``HttpxTransport`` — default httpx-based transport.

    Envelope builder:
        - ``build_payment_envelope`` → ``UnsignedEnvelope``.
"""

from stellar_pay.ledger.client import (
    NATIVE_ASSET_TYPE,
    AccountState,
    Balance,
    LedgerClient,
    SubmitResult,
)
from stellar_pay.ledger.horizon_client import HorizonClient
from stellar_pay.ledger.transport import HttpResponse, HttpTransport, HttpxTransport
from stellar_pay.ledger.tx import UnsignedEnvelope, build_payment_envelope

__all__ = [
    "NATIVE_ASSET_TYPE",
    "AccountState",
    "Balance",
    "HorizonClient",
    "HttpResponse",
    "HttpTransport",
    "HttpxTransport",
    "LedgerClient",
    "SubmitResult",
    "UnsignedEnvelope",
    "build_payment_envelope",
]
