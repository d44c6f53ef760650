"""
Session token service.

Tokens are JWTs whose claims carry everything needed to inspect a session
without external state: subject address, issue time, expiry and session id.

The wallet signature challenge is the trust anchor for a session, so by
default tokens are unsecured JWTs (``alg: none``). When a ``token_secret`` is
configured they are HMAC-signed and ``verify`` checks the signature.
"""

import logging
from typing import Any

import jwt

from .config.schema import SessionConfig
from .exceptions import ValidationError
from .types import AuthUser

logger = logging.getLogger(__name__)

UNSIGNED_ALGORITHM = "none"


class SessionTokenService:
    """Issues and inspects session tokens."""

    def __init__(self, config: SessionConfig | None = None):
        config = config or SessionConfig()
        self.secret = config.token_secret
        self.algorithm = config.token_algorithm if self.secret else UNSIGNED_ALGORITHM

    @property
    def is_signed(self) -> bool:
        return self.secret is not None

    def issue(self, user: AuthUser, issued_at: int, expires_at: int) -> str:
        """
        Build a token for ``user``.

        Args:
            user: Authenticated user
            issued_at: Issue time in milliseconds
            expires_at: Session expiry in milliseconds

        Returns:
            Encoded JWT
        """
        claims = {
            "sub": user.address,
            "iat": issued_at // 1000,
            "exp": expires_at // 1000,
            "sid": user.session_id,
            "login_time": user.login_time,
        }
        try:
            return jwt.encode(claims, self.secret, algorithm=self.algorithm)
        except Exception as e:
            raise RuntimeError(f"Failed to generate session token: {e}") from e

    def inspect(self, token: str) -> dict[str, Any]:
        """
        Decode claims without checking the signature or expiry.

        Raises:
            ValidationError: If the token is not a well-formed JWT
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            raise ValidationError("Malformed session token", {"error": str(e)}) from e

    def verify(self, token: str) -> dict[str, Any]:
        """
        Decode claims and check the HMAC signature.

        Expiry is checked by the caller against its own clock.

        Raises:
            ValidationError: If the token is malformed, unsigned, or the
                signature does not match
        """
        if not self.is_signed:
            raise ValidationError("Token verification requires a token secret")
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Session token failed verification: {e}")
            raise ValidationError("Invalid session token", {"error": str(e)}) from e
