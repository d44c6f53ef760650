"""Test doubles shared across the WalletGuard test suite."""

import asyncio

from walletguard.protocols import WalletSigner
from walletguard.signers import LocalAccountSigner
from walletguard.storage import MemorySecureStore

START_MS = 1_700_000_000_000

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32

TOKEN_SECRET = "test-secret-key-that-is-long-enough-for-hmac"


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 0, *, seconds: float = 0, minutes: float = 0, hours: float = 0):
        self.now += int(ms + seconds * 1000 + minutes * 60_000 + hours * 3_600_000)
        return self.now


class FlakyStore(MemorySecureStore):
    """Memory store whose reads and writes can be made to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    async def get(self, key):
        if self.fail_reads:
            raise OSError("keychain unavailable")
        return await super().get(key)

    async def set(self, key, value):
        if self.fail_writes:
            raise OSError("keychain unavailable")
        self.writes += 1
        await super().set(key, value)

    async def remove(self, keys):
        if self.fail_writes:
            raise OSError("keychain unavailable")
        await super().remove(keys)


class ScriptedSigner(WalletSigner):
    """
    Local-key signer with hooks for driving the authentication flow.

    - ``reject``: raise instead of signing, like a user declining the prompt
    - ``gate``: an asyncio.Event the signer waits on before signing
    - ``before_sign``: callable run once the signature is requested
    - ``signing_key``: sign with a different key than the reported address
    """

    def __init__(self, private_key: str = ALICE_KEY):
        self._wallet = LocalAccountSigner(private_key)
        self.address = self._wallet.address
        self.connected = True
        self.reject = False
        self.gate: asyncio.Event | None = None
        self.before_sign = None
        self.signing_key: str | None = None
        self.sign_calls = 0
        self.disconnect_calls = 0
        self.messages: list[str] = []

    async def sign_message(self, message: str) -> str:
        self.sign_calls += 1
        self.messages.append(message)
        if self.before_sign is not None:
            self.before_sign()
        if self.gate is not None:
            await self.gate.wait()
        if self.reject:
            raise RuntimeError("User rejected the request")
        if self.signing_key is not None:
            return await LocalAccountSigner(self.signing_key).sign_message(message)
        return await self._wallet.sign_message(message)

    def get_address(self) -> str | None:
        return self.address if self.connected else None

    def is_connected(self) -> bool:
        return self.connected

    async def disconnect(self) -> None:
        self.disconnect_calls += 1


