"""
stellar-pay: wallet session and payment orchestration for Stellar.

Public API:

    Facade:
        - ``WalletOrchestrator`` — connect, disconnect, fetch_balance,
          request_funding, send; returns ``OperationResult``.

    Components:
        - ``SessionManager``, ``BalanceSynchronizer``, ``FundingRequester``,
          ``PaymentPipeline``.

    State machine:
        - ``PaymentPhase``, ``TRANSITIONS``, ``OperationStatus``.

    Errors:
        - ``ErrorCode``, ``PaymentError``.

    Protocols (for dependency injection):
        - ``LedgerClient``, ``SigningProvider``, ``FaucetClient``.
"""

from stellar_pay.balance import AccountBalance, BalanceSynchronizer
from stellar_pay.config import TESTNET, NetworkConfig
from stellar_pay.errors import ErrorCode, PaymentError
from stellar_pay.faucet import FaucetClient, FriendbotClient, FundingResult
from stellar_pay.funding import FundingRequester
from stellar_pay.ledger import HorizonClient, LedgerClient
from stellar_pay.phases import TRANSITIONS, OperationStatus, PaymentPhase
from stellar_pay.pipeline import PaymentOutcome, PaymentPipeline
from stellar_pay.session import SessionManager
from stellar_pay.signing import AccessResult, SigningProvider, SignResult, WalletBridgeProvider
from stellar_pay.validation import PaymentRequest
from stellar_pay.wallet import OperationResult, WalletOrchestrator, format_balance

__version__ = "0.1.0"

__all__ = [
    "TESTNET",
    "TRANSITIONS",
    "AccessResult",
    "AccountBalance",
    "BalanceSynchronizer",
    "ErrorCode",
    "FaucetClient",
    "FriendbotClient",
    "FundingRequester",
    "FundingResult",
    "HorizonClient",
    "LedgerClient",
    "NetworkConfig",
    "OperationResult",
    "OperationStatus",
    "PaymentError",
    "PaymentOutcome",
    "PaymentPhase",
    "PaymentPipeline",
    "PaymentRequest",
    "SessionManager",
    "SignResult",
    "SigningProvider",
    "WalletBridgeProvider",
    "WalletOrchestrator",
    "format_balance",
]
