"""In-process wallet signer backed by a local private key."""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from .protocols import WalletSigner

logger = logging.getLogger(__name__)


class LocalAccountSigner(WalletSigner):
    """Signs challenges with a key held in memory.

    Meant for development builds and tests; production wallets sign in a
    separate app and are adapted to ``WalletSigner`` by the connection layer.
    """

    def __init__(self, private_key: str | bytes | None = None):
        self._account = (
            Account.from_key(private_key) if private_key is not None else Account.create()
        )
        self._connected = True

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_message(self, message: str) -> str:
        if not self._connected:
            raise ConnectionError("Wallet is not connected")

        signed = self._account.sign_message(encode_defunct(text=message))
        return "0x" + signed.signature.hex().removeprefix("0x")

    def get_address(self) -> str | None:
        return self._account.address if self._connected else None

    def is_connected(self) -> bool:
        return self._connected

    async def disconnect(self) -> None:
        logger.debug(f"Disconnecting local signer {self._account.address}")
        self._connected = False
