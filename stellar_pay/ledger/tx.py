"""
Transaction envelope builder for native-asset payments.

Builds an unsigned Payment envelope from loaded source-account state.
Pure apart from the caller-supplied clock: no network calls, no secrets.

The builder enforces:
    - exactly one Payment operation
    - asset == native
    - fee == base_fee * operations (network-standard base fee)
    - a finite validity window ``[0, now + timeout_s]``
    - sequence == source sequence + 1
"""

from __future__ import annotations

from dataclasses import dataclass

from stellar_sdk import Account, Asset, TransactionBuilder
from stellar_sdk.exceptions import SdkError

from stellar_pay.errors import ErrorCode, PaymentError
from stellar_pay.ledger.client import AccountState


@dataclass(frozen=True)
class UnsignedEnvelope:
    """An unsigned transaction envelope plus build metadata.

    Attributes:
        xdr: Base64 XDR of the envelope. Opaque to the pipeline.
        source: Source account id.
        sequence: Sequence number consumed by this transaction.
        fee: Total fee in stroops.
        valid_until: Unix time after which the ledger rejects it.
    """

    xdr: str
    source: str
    sequence: int
    fee: int
    valid_until: int


def build_payment_envelope(
    source: AccountState,
    destination: str,
    amount: str,
    *,
    network_passphrase: str,
    base_fee: int,
    timeout_s: int,
    now: int,
) -> UnsignedEnvelope:
    """Build an unsigned native payment envelope.

    Args:
        source: Loaded state of the paying account (must be found).
        destination: Recipient account id. Its existence is not checked.
        amount: Decimal amount string, already validated.
        network_passphrase: Network the envelope is bound to.
        base_fee: Per-operation fee in stroops.
        timeout_s: Validity window length in seconds.
        now: Current unix time.

    Returns:
        UnsignedEnvelope ready for signing.

    Raises:
        PaymentError: ACCOUNT_NOT_FOUND if ``source`` was not found.
        PaymentError: VALIDATION_FAILED if the SDK rejects the
            destination (bad checksum) or the amount.
        ValueError: If ``timeout_s`` is not positive.
    """
    if not source.found:
        raise PaymentError(
            ErrorCode.ACCOUNT_NOT_FOUND,
            "Source account does not exist on the ledger; fund it first",
        )
    if timeout_s <= 0:
        raise ValueError(f"timeout_s must be positive, got: {timeout_s}")

    valid_until = now + timeout_s
    account = Account(source.account_id, source.sequence)
    try:
        envelope = (
            TransactionBuilder(
                source_account=account,
                network_passphrase=network_passphrase,
                base_fee=base_fee,
            )
            .append_payment_op(destination=destination, asset=Asset.native(), amount=amount)
            .add_time_bounds(0, valid_until)
            .build()
        )
    except (ValueError, SdkError) as exc:
        raise PaymentError(
            ErrorCode.VALIDATION_FAILED,
            f"Payment could not be built: {exc}",
        ) from exc

    return UnsignedEnvelope(
        xdr=envelope.to_xdr(),
        source=source.account_id,
        sequence=envelope.transaction.sequence,
        fee=envelope.transaction.fee,
        valid_until=valid_until,
    )
