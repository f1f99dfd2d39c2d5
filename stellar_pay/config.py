"""
Network configuration.

A ``NetworkConfig`` pins every endpoint and ledger constant one session
talks to. The signing authority is always asked to sign for
``network_passphrase``, so a wallet switched to another network cannot
produce an envelope this session would submit.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

TESTNET_PASSPHRASE = "Test SDF Network ; September 2015"

# Network-standard base fee, in stroops (1 XLM = 10^7 stroops).
BASE_FEE_STROOPS = 100

# Validity window of a built transaction, in seconds from build time.
TX_TIMEOUT_SECONDS = 30

DEFAULT_WALLET_BRIDGE_URL = "http://127.0.0.1:4597/rpc"


@dataclass(frozen=True)
class NetworkConfig:
    """Endpoints and constants for one ledger network.

    Attributes:
        horizon_url: Ledger query/submission service base URL.
        friendbot_url: Test-funding faucet URL.
        network_passphrase: Network identifier pinned for signing.
        base_fee: Per-operation fee in stroops.
        tx_timeout_s: Validity window of built transactions.
        http_timeout_s: Timeout for each HTTP call.
        explorer_url: Base URL for transaction links (hash is appended).
        wallet_bridge_url: JSON-RPC endpoint of the wallet bridge.
    """

    horizon_url: str = "https://horizon-testnet.stellar.org"
    friendbot_url: str = "https://friendbot.stellar.org"
    network_passphrase: str = TESTNET_PASSPHRASE
    base_fee: int = BASE_FEE_STROOPS
    tx_timeout_s: int = TX_TIMEOUT_SECONDS
    http_timeout_s: float = 30.0
    explorer_url: str = "https://stellar.expert/explorer/testnet/tx/"
    wallet_bridge_url: str = DEFAULT_WALLET_BRIDGE_URL

    def __post_init__(self) -> None:
        if self.base_fee < 100:
            raise ValueError(f"base_fee must be >= 100 stroops, got: {self.base_fee}")
        if self.tx_timeout_s <= 0:
            raise ValueError(
                f"tx_timeout_s must be positive (unbounded windows are not allowed), "
                f"got: {self.tx_timeout_s}"
            )
        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got: {self.http_timeout_s}")
        if not self.network_passphrase:
            raise ValueError("network_passphrase must be non-empty")

    def tx_link(self, tx_hash: str) -> str:
        """Explorer URL for a settled transaction."""
        return f"{self.explorer_url}{tx_hash}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> NetworkConfig:
        """Build a config from ``STELLAR_PAY_*`` environment variables.

        Unset variables fall back to testnet defaults.

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            horizon_url=env.get("STELLAR_PAY_HORIZON_URL", defaults.horizon_url),
            friendbot_url=env.get("STELLAR_PAY_FRIENDBOT_URL", defaults.friendbot_url),
            network_passphrase=env.get(
                "STELLAR_PAY_NETWORK_PASSPHRASE", defaults.network_passphrase
            ),
            base_fee=int(env.get("STELLAR_PAY_BASE_FEE", defaults.base_fee)),
            tx_timeout_s=int(env.get("STELLAR_PAY_TX_TIMEOUT", defaults.tx_timeout_s)),
            http_timeout_s=float(
                env.get("STELLAR_PAY_HTTP_TIMEOUT", defaults.http_timeout_s)
            ),
            explorer_url=env.get("STELLAR_PAY_EXPLORER_URL", defaults.explorer_url),
            wallet_bridge_url=env.get(
                "STELLAR_PAY_WALLET_BRIDGE_URL", defaults.wallet_bridge_url
            ),
        )


TESTNET = NetworkConfig()
