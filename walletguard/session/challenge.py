"""Challenge messages signed by the wallet to prove address ownership."""

import re
import secrets

from ..exceptions import ValidationError
from ..types import Challenge

CHALLENGE_TEMPLATE = (
    "Welcome to {app_name}!\n"
    "\n"
    "Please sign this message to authenticate your wallet.\n"
    "\n"
    "Address: {address}\n"
    "Timestamp: {timestamp}\n"
    "Nonce: {nonce}\n"
    "\n"
    "This request will not trigger a blockchain transaction or cost any gas fees."
)

_FIELD_PATTERNS = {
    "address": re.compile(r"^Address: (0x[0-9a-fA-F]{40})$", re.MULTILINE),
    "timestamp": re.compile(r"^Timestamp: (\d+)$", re.MULTILINE),
    "nonce": re.compile(r"^Nonce: ([0-9a-f]+)$", re.MULTILINE),
}


def generate_nonce(num_bytes: int = 16) -> str:
    return secrets.token_hex(num_bytes)


def create_challenge(
    address: str, now: int, app_name: str = "WalletGuard", nonce: str | None = None
) -> Challenge:
    """Build the challenge for ``address`` issued at ``now``."""
    nonce = nonce or generate_nonce()
    message = CHALLENGE_TEMPLATE.format(
        app_name=app_name, address=address, timestamp=now, nonce=nonce
    )
    return Challenge(message=message, timestamp=now, nonce=nonce, address=address)


def parse_challenge_message(message: str) -> Challenge:
    """Recover the challenge fields from its message text, e.g. for audit logs.

    Raises:
        ValidationError: If a required line is missing or malformed
    """
    values = {}
    for name, pattern in _FIELD_PATTERNS.items():
        match = pattern.search(message or "")
        if match is None:
            raise ValidationError(f"Challenge message has no valid '{name}' line")
        values[name] = match.group(1)

    return Challenge(
        message=message,
        timestamp=int(values["timestamp"]),
        nonce=values["nonce"],
        address=values["address"],
    )
