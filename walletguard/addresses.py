"""Address validation and signer recovery for EIP-191 personal messages."""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address

from .exceptions import SignatureVerificationError

logger = logging.getLogger(__name__)


def is_valid_address(address: str | None) -> bool:
    """Check that ``address`` is a well-formed 20-byte hex address.

    Mixed-case input must carry a valid EIP-55 checksum; all-lowercase and
    all-uppercase input is accepted as-is.
    """
    if not isinstance(address, str) or not address:
        return False
    try:
        return is_address(address)
    except (TypeError, ValueError):
        return False


def normalize_address(address: str) -> str:
    return address.strip().lower()


def addresses_match(first: str | None, second: str | None) -> bool:
    """Case-insensitive address comparison; None never matches."""
    if not first or not second:
        return False
    return normalize_address(first) == normalize_address(second)


def recover_signer(message: str, signature: str) -> str:
    """Recover the address that signed ``message``.

    Args:
        message: The exact text that was signed
        signature: Hex-encoded 65-byte signature

    Returns:
        Checksummed signer address

    Raises:
        SignatureVerificationError: If the signature cannot be decoded
    """
    try:
        signable = encode_defunct(text=message)
        return Account.recover_message(signable, signature=signature)
    except Exception as e:
        logger.debug(f"Signature recovery failed: {e}")
        raise SignatureVerificationError(
            "Unable to recover signer from signature", {"error": str(e)}
        ) from e
