"""
Interfaces for the collaborators the authentication core depends on.

The wallet connection layer and the device key/value store live outside this
package. Applications hand concrete implementations to the composition root;
tests hand in fakes.

Security considerations:
- The signer is the only source of proof of ownership
- Stored values are opaque strings; callers serialize their own state
- Implementations should not log signatures or session tokens
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable


class WalletSigner(ABC):
    """
    Abstract wallet connection that can sign messages.

    ``sign_message`` may take arbitrarily long (the user is looking at a
    confirmation prompt) and may raise when the user declines or the
    connection drops.
    """

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        """
        Sign ``message`` as a personal message (EIP-191).

        Args:
            message: Text shown to the user and signed

        Returns:
            Hex-encoded signature

        Raises:
            Exception: If the user rejects the request or the wallet is unreachable
        """
        pass

    @abstractmethod
    def get_address(self) -> str | None:
        """Currently connected account address, or None."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    async def disconnect(self) -> None:
        """Ask the wallet layer to drop its connection. Optional."""
        return None


class SecureStore(ABC):
    """
    Abstract async key/value store for persisted state.

    Values are strings. Missing keys read as None. Removing a missing key is
    not an error.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove(self, keys: Iterable[str]) -> None:
        """
        Remove several keys at once.

        Args:
            keys: Keys to erase
        """
        pass
