"""
Payment request validation.

A ``PaymentRequest`` is checked in full before any network action and is
immutable afterwards.

Invariants:
    - recipient: Stellar account id, "G" + 55 base32 chars [A-Z2-7],
      with a valid strkey checksum.
    - amount: plain positive decimal (ASCII digits only), at most 7
      fractional digits, at most the int64 stroop maximum. Excess
      precision is rejected, never rounded.
    - Recipient existence is not checked at all. Payments to unknown
      accounts go to the ledger as-is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from stellar_sdk import StrKey

from stellar_pay.errors import ErrorCode, PaymentError

ACCOUNT_ID_LENGTH = 56
AMOUNT_DECIMALS = 7
MAX_AMOUNT = Decimal("922337203685.4775807")

_ACCOUNT_ID_RE = re.compile(r"^G[A-Z2-7]{55}$")
_AMOUNT_RE = re.compile(r"^([0-9]+)(?:\.([0-9]+))?$")


def is_account_id(value: str | None) -> bool:
    """True if ``value`` is a Stellar account id with a valid checksum."""
    if not value or _ACCOUNT_ID_RE.match(value) is None:
        return False
    return StrKey.is_valid_ed25519_public_key(value)


def _invalid(message: str) -> PaymentError:
    return PaymentError(ErrorCode.VALIDATION_FAILED, message)


def validate_recipient(recipient: str) -> str:
    value = recipient.strip()
    if not value:
        raise _invalid("Recipient address is required")
    if len(value) != ACCOUNT_ID_LENGTH:
        raise _invalid(
            f"Recipient address must be {ACCOUNT_ID_LENGTH} characters, got {len(value)}"
        )
    if not _ACCOUNT_ID_RE.match(value):
        raise _invalid("Recipient address must start with G and use only A-Z and 2-7")
    if not StrKey.is_valid_ed25519_public_key(value):
        raise _invalid("Recipient address checksum is invalid")
    return value


def parse_amount(amount: str) -> Decimal:
    """Parse a user-entered amount into a Decimal.

    Raises:
        PaymentError: VALIDATION_FAILED for empty, signed, exponent,
            non-positive, over-precise or over-large amounts.
    """
    value = amount.strip()
    if not value:
        raise _invalid("Amount is required")

    match = _AMOUNT_RE.match(value)
    if match is None:
        raise _invalid(f"Amount must be a positive decimal number, got: {amount!r}")

    fraction = match.group(2) or ""
    if len(fraction) > AMOUNT_DECIMALS:
        raise _invalid(f"Amount supports at most {AMOUNT_DECIMALS} decimal places")

    try:
        parsed = Decimal(value)
    except InvalidOperation as exc:
        raise _invalid(f"Amount must be a positive decimal number, got: {amount!r}") from exc

    if parsed <= 0:
        raise _invalid("Amount must be greater than zero")
    if parsed > MAX_AMOUNT:
        raise _invalid(f"Amount must not exceed {MAX_AMOUNT}")
    return parsed


@dataclass(frozen=True)
class PaymentRequest:
    """A validated native-asset payment request.

    Construct through ``PaymentRequest.create`` to get stripped values;
    direct construction validates the fields as given.
    """

    recipient: str
    amount: str

    def __post_init__(self) -> None:
        if validate_recipient(self.recipient) != self.recipient:
            raise _invalid("Recipient address must not contain surrounding whitespace")
        parse_amount(self.amount)

    @property
    def amount_decimal(self) -> Decimal:
        return Decimal(self.amount)

    @classmethod
    def create(cls, recipient: str | None, amount: str | None) -> PaymentRequest:
        """Validate raw user input and return an immutable request.

        Raises:
            PaymentError: VALIDATION_FAILED on any invalid field.
        """
        if not recipient or not recipient.strip():
            raise _invalid("Recipient address is required")
        if not amount or not amount.strip():
            raise _invalid("Amount is required")
        return cls(recipient=recipient.strip(), amount=amount.strip())
