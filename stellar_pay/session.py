"""
Wallet session — connection lifecycle with the signing authority.

A ``SessionManager`` holds at most one bound account id. ``connect`` and
``disconnect`` are its only mutators. Every bind and unbind advances a
generation counter; work that captured a ``SessionBinding`` checks it
with ``ensure_current`` at each stage boundary, so a disconnect (or a
reconnect to another account) mid-run fails fast instead of operating on
a stale address.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stellar_pay.errors import ErrorCode, PaymentError
from stellar_pay.signing import SigningProvider
from stellar_pay.validation import is_account_id

logger = logging.getLogger(__name__)

WALLET_NOT_FOUND_MESSAGE = (
    "Wallet not found. Install the wallet extension and make sure it is running."
)
NO_ADDRESS_MESSAGE = (
    "Could not retrieve public key. Make sure the wallet is unlocked and has an account."
)
NOT_CONNECTED_MESSAGE = "Wallet is not connected"
SIGNING_CANCELLED_MESSAGE = "Transaction signing failed or was cancelled"


def short_address(address: str) -> str:
    """``GABCDE...UVWXYZ`` form for display and logs."""
    if len(address) <= 12:
        return address
    return f"{address[:6]}...{address[-6:]}"


@dataclass(frozen=True)
class SessionBinding:
    """Snapshot of the bound address at one generation."""

    address: str
    generation: int


class SessionManager:
    """Owns the single account binding for one wallet session.

    Args:
        provider: The external signing authority.
        network_passphrase: Network every signature is pinned to.
    """

    def __init__(self, provider: SigningProvider, network_passphrase: str) -> None:
        self._provider = provider
        self._network_passphrase = network_passphrase
        self._address: str | None = None
        self._generation = 0

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def is_connected(self) -> bool:
        return self._address is not None

    @property
    def generation(self) -> int:
        return self._generation

    async def connect(self) -> str:
        """Detect the wallet, request access, bind the granted address.

        Connecting while connected repeats the handshake and replaces
        the binding.

        Returns:
            The bound account id.

        Raises:
            PaymentError: WALLET_NOT_FOUND if the provider is absent.
            PaymentError: AUTHORIZATION_DENIED on refusal, provider
                error, or an empty/malformed address.
        """
        try:
            present = await self._provider.is_present()
        except Exception as exc:
            logger.debug("wallet presence check failed: %s", exc)
            present = False
        if not present:
            raise PaymentError(ErrorCode.WALLET_NOT_FOUND, WALLET_NOT_FOUND_MESSAGE)

        try:
            access = await self._provider.request_access()
        except Exception as exc:
            raise PaymentError(
                ErrorCode.AUTHORIZATION_DENIED,
                f"Failed to connect wallet: {exc}",
            ) from exc

        if access.error:
            raise PaymentError(ErrorCode.AUTHORIZATION_DENIED, access.error)
        address = (access.address or "").strip()
        if not is_account_id(address):
            raise PaymentError(ErrorCode.AUTHORIZATION_DENIED, NO_ADDRESS_MESSAGE)

        self._address = address
        self._generation += 1
        logger.info("wallet connected: %s", short_address(address))
        return address

    def disconnect(self) -> None:
        """Clear the binding. No-op when already disconnected."""
        if self._address is None:
            return
        logger.info("wallet disconnected: %s", short_address(self._address))
        self._address = None
        self._generation += 1

    def require(self) -> SessionBinding:
        """Snapshot the current binding.

        Raises:
            PaymentError: NOT_CONNECTED if no address is bound.
        """
        if self._address is None:
            raise PaymentError(ErrorCode.NOT_CONNECTED, NOT_CONNECTED_MESSAGE)
        return SessionBinding(address=self._address, generation=self._generation)

    def ensure_current(self, binding: SessionBinding) -> None:
        """Raise NOT_CONNECTED if ``binding`` is no longer the live one."""
        if self._address is None or binding.generation != self._generation:
            raise PaymentError(ErrorCode.NOT_CONNECTED, NOT_CONNECTED_MESSAGE)

    async def sign(self, envelope_xdr: str, binding: SessionBinding) -> str:
        """Have the signing authority sign ``envelope_xdr``.

        The network passphrase is pinned to this session's network and
        the bound address is named as the expected signer.

        Returns:
            The signed envelope XDR (non-empty).

        Raises:
            PaymentError: NOT_CONNECTED if the binding went stale before
                or during signing.
            PaymentError: SIGNING_REJECTED on refusal, provider error,
                or an empty signed result. Never retried.
        """
        self.ensure_current(binding)
        try:
            result = await self._provider.sign_transaction(
                envelope_xdr,
                network_passphrase=self._network_passphrase,
                address=binding.address,
            )
        except Exception as exc:
            raise PaymentError(
                ErrorCode.SIGNING_REJECTED,
                f"Wallet failed to sign: {exc}",
            ) from exc
        self.ensure_current(binding)

        if result.error:
            raise PaymentError(ErrorCode.SIGNING_REJECTED, result.error)
        signed = (result.signed_envelope_xdr or "").strip()
        if not signed:
            raise PaymentError(ErrorCode.SIGNING_REJECTED, SIGNING_CANCELLED_MESSAGE)
        return signed
