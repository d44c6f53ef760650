"""Exception classes for the wallet authentication core."""

from .types import AuthErrorKind


class WalletGuardError(Exception):
    """Base exception for all WalletGuard errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthenticationError(WalletGuardError):
    """Raised when an authentication step fails.

    Carries the error kind so the public operation that catches it can turn it
    into a result value.
    """

    def __init__(
        self, kind: AuthErrorKind, message: str, details: dict | None = None
    ):
        self.kind = kind
        super().__init__(message, details)


class SignatureVerificationError(WalletGuardError):
    """Raised when a signer address cannot be recovered from a signature."""

    pass


class ValidationError(WalletGuardError):
    """Raised when domain data fails validation."""

    pass


class ConfigurationError(WalletGuardError):
    """Raised when WalletGuard configuration is invalid."""

    pass


class StorageError(WalletGuardError):
    """Raised when persisted state cannot be read or written."""

    pass
