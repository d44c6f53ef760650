"""
WalletGuard: wallet signature authentication and account security policy.

The two services are ``SessionAuthenticator``, which proves wallet ownership
with a signed challenge and manages the resulting session, and
``SecurityPolicyEngine``, which records security events, detects abuse, locks
the account and validates outgoing transactions.
"""

from walletguard.bootstrap import WalletGuardBootstrap
from walletguard.config import WalletGuardConfig, WalletGuardConfigLoader
from walletguard.emitter import EventEmitter
from walletguard.exceptions import (
    AuthenticationError,
    ConfigurationError,
    SignatureVerificationError,
    StorageError,
    ValidationError,
    WalletGuardError,
)
from walletguard.protocols import SecureStore, WalletSigner
from walletguard.reporting import AppError, ErrorReporter, LoggingErrorReporter
from walletguard.security import SecurityPolicyEngine
from walletguard.session import SessionAuthenticator
from walletguard.signers import LocalAccountSigner
from walletguard.storage import MemorySecureStore
from walletguard.types import (
    AuthErrorKind,
    AuthResult,
    AuthUser,
    Challenge,
    SecurityEvent,
    SecurityEventType,
    SecurityMetrics,
    Session,
    TransactionRequest,
    ValidationResult,
    WalletEvent,
)

__all__ = [
    "AppError",
    "AuthErrorKind",
    "AuthResult",
    "AuthUser",
    "AuthenticationError",
    "Challenge",
    "ConfigurationError",
    "ErrorReporter",
    "EventEmitter",
    "LocalAccountSigner",
    "LoggingErrorReporter",
    "MemorySecureStore",
    "SecureStore",
    "SecurityEvent",
    "SecurityEventType",
    "SecurityMetrics",
    "SecurityPolicyEngine",
    "Session",
    "SessionAuthenticator",
    "SignatureVerificationError",
    "StorageError",
    "TransactionRequest",
    "ValidationError",
    "ValidationResult",
    "WalletEvent",
    "WalletGuardBootstrap",
    "WalletGuardConfig",
    "WalletGuardConfigLoader",
    "WalletGuardError",
]
