"""
Error taxonomy and classification for wallet and payment operations.

Every failure along the connect → fetch → fund → send path ends up as a
``PaymentError`` carrying one ``ErrorCode``. The taxonomy is closed:
callers can switch on the code without ever seeing a raw transport or
SDK exception.

Horizon rejection decoding keeps the most specific reason available:
    1. first operation result code (``op_underfunded``, ``op_no_destination``)
    2. transaction result code (``tx_bad_seq``, ``tx_too_late``)
    3. problem detail text from the response body
    4. a generic "Transaction failed"

Reference:
    https://developers.stellar.org/docs/data/horizon/api-reference/errors/result-codes
"""

from __future__ import annotations

from enum import StrEnum

import httpx

# =========================================================================
# Taxonomy
# =========================================================================


class ErrorCode(StrEnum):
    """Closed error taxonomy for orchestrator results."""

    WALLET_NOT_FOUND = "WalletNotFound"
    AUTHORIZATION_DENIED = "AuthorizationDenied"
    NOT_CONNECTED = "NotConnected"
    PIPELINE_BUSY = "PipelineBusy"
    VALIDATION_FAILED = "ValidationFailed"
    LEDGER_UNAVAILABLE = "LedgerUnavailable"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    SIGNING_REJECTED = "SigningRejected"
    SUBMISSION_REJECTED = "SubmissionRejected"
    FUNDING_FAILED = "FundingFailed"


class PaymentError(Exception):
    """A classified failure.

    Attributes:
        code: Taxonomy entry.
        message: Human-readable message, safe to show to a user.
        reason: Most specific machine-readable reason when one exists
            (e.g. a Horizon result code). None otherwise.
    """

    def __init__(self, code: ErrorCode, message: str, *, reason: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.reason = reason

    def __repr__(self) -> str:
        return f"PaymentError({self.code.value}, {self.message!r}, reason={self.reason!r})"


class ServiceResponseError(Exception):
    """A remote service answered, but not with anything usable.

    Raised by clients for unexpected statuses (429, 5xx) and bodies that
    fail schema validation.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# =========================================================================
# Horizon result codes → messages
# =========================================================================

GENERIC_SUBMISSION_MESSAGE = "Transaction failed"

# Start small, add precision when needed. Unknown codes keep the raw code.
_RESULT_CODE_MESSAGES: dict[str, str] = {
    "op_underfunded": "Insufficient balance for this payment",
    "op_low_reserve": "Payment would leave an account below the minimum reserve",
    "op_no_destination": "Destination account does not exist on the ledger",
    "op_malformed": "Payment operation is malformed",
    "op_line_full": "Destination cannot hold more of this asset",
    "tx_bad_seq": "Sequence number mismatch; reload the account and try again",
    "tx_too_late": "Transaction validity window expired before submission",
    "tx_too_early": "Transaction is not valid yet",
    "tx_insufficient_balance": "Insufficient balance to pay the transaction fee",
    "tx_insufficient_fee": "Fee too low for current network load",
    "tx_bad_auth": "Transaction signature is missing or invalid",
    "tx_no_source_account": "Source account does not exist on the ledger",
    "tx_malformed": "Transaction is malformed",
}


def describe_result_code(code: str) -> str:
    """Human message for a Horizon result code, or the code itself."""
    return _RESULT_CODE_MESSAGES.get(code, code)


def classify_rejection(
    *,
    transaction_code: str | None = None,
    operation_codes: tuple[str, ...] = (),
    detail: str | None = None,
) -> PaymentError:
    """Decode a Horizon submission rejection into ``SubmissionRejected``.

    Operation codes win over the transaction code because ``tx_failed``
    only says that some operation failed. ``op_success`` entries are
    skipped.

    Args:
        transaction_code: ``extras.result_codes.transaction``.
        operation_codes: ``extras.result_codes.operations``.
        detail: Problem ``detail`` (or ``title``) from the response body.

    Returns:
        PaymentError with code SUBMISSION_REJECTED and the most specific
        reason attached.
    """
    for op_code in operation_codes:
        if op_code and op_code != "op_success":
            return PaymentError(
                ErrorCode.SUBMISSION_REJECTED,
                describe_result_code(op_code),
                reason=op_code,
            )

    if transaction_code and transaction_code != "tx_failed":
        return PaymentError(
            ErrorCode.SUBMISSION_REJECTED,
            describe_result_code(transaction_code),
            reason=transaction_code,
        )

    if detail:
        return PaymentError(ErrorCode.SUBMISSION_REJECTED, detail, reason=transaction_code)

    return PaymentError(
        ErrorCode.SUBMISSION_REJECTED,
        GENERIC_SUBMISSION_MESSAGE,
        reason=transaction_code,
    )


# =========================================================================
# Exception → taxonomy
# =========================================================================


def classify_connection_error(exc: BaseException) -> PaymentError:
    """Classify a failure that never produced a ledger verdict.

    Used when a query or submission never reached Horizon or came back
    unusable (DNS failure, TLS error, socket timeout, malformed body).

    Returns:
        Always LEDGER_UNAVAILABLE.
    """
    if isinstance(exc, httpx.TimeoutException):
        message = "Ledger service timed out"
    elif isinstance(exc, httpx.HTTPError):
        message = f"Ledger service unreachable: {exc}"
    else:
        message = f"Ledger service unavailable: {exc}"
    return PaymentError(ErrorCode.LEDGER_UNAVAILABLE, message)


def classify_exception(exc: BaseException, default: ErrorCode) -> PaymentError:
    """Map any exception raised inside a stage onto the taxonomy.

    Already-classified errors pass through unchanged. Transport errors
    become LEDGER_UNAVAILABLE. Anything else gets ``default`` so that no
    unclassified exception crosses a stage boundary.
    """
    if isinstance(exc, PaymentError):
        return exc
    if isinstance(exc, (httpx.HTTPError, OSError, ServiceResponseError)):
        return classify_connection_error(exc)
    return PaymentError(default, str(exc) or type(exc).__name__)
