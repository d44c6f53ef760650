"""
Challenge-response wallet authentication and session lifecycle.

``SessionAuthenticator`` proves ownership of the connected wallet by having
it sign a fresh challenge, then keeps a client-local session for that address.
Every authentication outcome is reported to the ``SecurityPolicyEngine``,
which may lock the account for later attempts.

Public coroutines return result values and never raise.
"""

import asyncio
import logging
import secrets
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from typing import Any

from ..addresses import addresses_match, recover_signer
from ..config.schema import SessionConfig
from ..emitter import EventEmitter
from ..exceptions import (
    AuthenticationError,
    SignatureVerificationError,
    StorageError,
    ValidationError,
)
from ..protocols import SecureStore, WalletSigner
from ..reporting import AppError, ErrorReporter, LoggingErrorReporter, user_message
from ..security.engine import SecurityPolicyEngine
from ..tokens import SessionTokenService
from ..types import (
    AuthErrorKind,
    AuthResult,
    AuthUser,
    SecurityEventType,
    Session,
    WalletEvent,
)
from ..utils import Clock, hours_to_ms, minutes_to_ms, now_ms
from .challenge import create_challenge
from .persistence import SessionRepository

logger = logging.getLogger(__name__)

EnsResolver = Callable[[str], Awaitable[str | None]]


class SessionAuthenticator:
    """
    Orchestrates challenge creation, signature verification and sessions.

    Only one authentication runs at a time; a caller that arrives while one is
    waiting on the wallet joins it and receives the same result instead of
    issuing a second challenge. ``logout`` at any point abandons an in-flight
    attempt and nothing from it is persisted.

    Examples:
        ```python
        auth = SessionAuthenticator(signer, store, engine)
        await auth.initialize()

        result = await auth.authenticate()
        if not result.success:
            show(user_message(result.error, result.retry_after_ms))
        ```
    """

    def __init__(
        self,
        signer: WalletSigner,
        store: SecureStore,
        security: SecurityPolicyEngine,
        config: SessionConfig | None = None,
        *,
        token_service: SessionTokenService | None = None,
        reporter: ErrorReporter | None = None,
        ens_resolver: EnsResolver | None = None,
        clock: Clock = now_ms,
        emitter: EventEmitter | None = None,
    ):
        self.config = config or SessionConfig()
        self._signer = signer
        self._security = security
        self._repository = SessionRepository(store)
        self._tokens = token_service or SessionTokenService(self.config)
        self._reporter = reporter or LoggingErrorReporter()
        self._ens_resolver = ens_resolver
        self._clock = clock
        self._emitter = emitter or EventEmitter("auth")

        self._session_ttl_ms = hours_to_ms(self.config.session_ttl_hours)
        self._challenge_expiry_ms = minutes_to_ms(self.config.challenge_expiry_minutes)

        self._session: Session | None = None
        self._in_flight: asyncio.Task | None = None
        # Bumped whenever a session ends; an attempt that sees it change abandons itself
        self._generation = 0

    def on(self, event: WalletEvent | str, handler: Callable[[Any], Any]) -> None:
        self._emitter.on(event, handler)

    def off(self, event: WalletEvent | str, handler: Callable[[Any], Any]) -> None:
        self._emitter.off(event, handler)

    async def initialize(self) -> bool:
        """
        Restore a persisted session, if any.

        Expired or unreadable sessions are erased. A restored session whose
        address differs from the wallet's current account is ended.

        Returns:
            False if the stored session could not be read, True otherwise
        """
        try:
            session = await self._repository.load()
        except StorageError as e:
            logger.error(f"Failed to load session: {e.details}")
            await self._clear_persisted()
            return False

        if session is None:
            return True

        if session.is_expired(self._clock()):
            logger.info("Stored session expired, clearing")
            await self._security.record_event(
                SecurityEventType.SESSION_EXPIRED, {"address": session.user.address}
            )
            await self._clear_persisted()
            return True

        self._session = session
        logger.info(f"Loaded valid session for {session.user.address}")

        address = self._signer.get_address()
        if address and not addresses_match(address, session.user.address):
            await self._end_session("account_changed", disconnect_wallet=False)
        return True

    async def authenticate(self) -> AuthResult:
        """
        Authenticate the connected wallet.

        Returns the current session unchanged while it is valid; otherwise
        runs the challenge-response flow.
        """
        if self._in_flight is not None and not self._in_flight.done():
            logger.debug("Authentication already in flight, joining it")
            return await asyncio.shield(self._in_flight)

        task = asyncio.ensure_future(self._authenticate())
        self._in_flight = task
        task.add_done_callback(self._clear_in_flight)
        return await asyncio.shield(task)

    def is_session_valid(self) -> bool:
        """Session unexpired and the wallet still connected to the same account."""
        session = self._session
        if session is None or session.is_expired(self._clock()):
            return False
        if not self._signer.is_connected():
            return False
        address = self._signer.get_address()
        if address and not addresses_match(address, session.user.address):
            return False
        return True

    def is_authenticated(self) -> bool:
        return self.is_session_valid()

    def get_current_user(self) -> AuthUser | None:
        return self._session.user if self._session else None

    def get_current_session(self) -> Session | None:
        return self._session

    async def refresh_session(self) -> AuthResult:
        """Extend the session by a full lifetime and re-issue its token."""
        try:
            session = self._session
            if session is None:
                return AuthResult.failure(
                    AuthErrorKind.SESSION_EXPIRED, "No session to refresh"
                )

            if not self._signer.is_connected():
                return AuthResult.failure(
                    AuthErrorKind.WALLET_DISCONNECTED, "Wallet disconnected"
                )

            now = self._clock()
            if session.is_expired(now):
                await self._security.record_event(
                    SecurityEventType.SESSION_EXPIRED, {"address": session.user.address}
                )
                await self._end_session("expired", disconnect_wallet=False)
                return AuthResult.failure(AuthErrorKind.SESSION_EXPIRED, "Session expired")

            address = self._signer.get_address()
            if address and not addresses_match(address, session.user.address):
                await self._end_session("account_changed", disconnect_wallet=False)
                return AuthResult.failure(
                    AuthErrorKind.SESSION_EXPIRED, "Wallet account changed"
                )

            user = replace(session.user, last_activity=now)
            expires_at = now + self._session_ttl_ms
            refreshed = Session(
                user=user,
                token=self._tokens.issue(user, now, expires_at),
                expires_at=expires_at,
                refresh_token=session.refresh_token,
            )
            self._session = refreshed
            await self._persist(refreshed)

            logger.debug(f"Session refreshed for {user.address}")
            return AuthResult.ok(refreshed)
        except Exception:
            logger.exception("Session refresh failed")
            return AuthResult.failure(
                AuthErrorKind.AUTHENTICATION_FAILED, "Failed to refresh session"
            )

    async def update_activity(self) -> None:
        session = self._session
        if session is None:
            return
        session.user.last_activity = self._clock()
        await self._persist(session)

    async def logout(self) -> AuthResult:
        """End the session and disconnect the wallet. Safe without a session."""
        try:
            logger.info("Logging out")
            await self._end_session("logout", disconnect_wallet=True)
            return AuthResult(success=True)
        except Exception:
            logger.exception("Logout failed")
            return AuthResult.failure(AuthErrorKind.AUTHENTICATION_FAILED, "Logout failed")

    async def handle_wallet_connected(self, address: str) -> None:
        """Wallet layer reports a (re)connected account."""
        try:
            self._emitter.emit(WalletEvent.WALLET_CONNECTED, {"address": address})
            session = self._session
            if session is not None and not addresses_match(address, session.user.address):
                logger.info("Connected account differs from session account")
                await self._end_session("account_changed", disconnect_wallet=False)
        except Exception:
            logger.exception("Failed to handle wallet connection")

    async def handle_wallet_disconnected(self) -> None:
        try:
            logger.info("Wallet disconnected")
            await self._end_session("wallet_disconnected", disconnect_wallet=False)
        except Exception:
            logger.exception("Failed to handle wallet disconnection")

    async def handle_accounts_changed(self, accounts: Sequence[str]) -> None:
        """Wallet layer reports its account list; the first entry is active."""
        try:
            if not accounts:
                await self._end_session("wallet_disconnected", disconnect_wallet=False)
                return

            session = self._session
            if session is not None and not addresses_match(accounts[0], session.user.address):
                logger.info("Active account changed, session ended")
                await self._end_session("account_changed", disconnect_wallet=False)
        except Exception:
            logger.exception("Failed to handle account change")

    def inspect_token(self, token: str | None = None) -> dict[str, Any]:
        """
        Decode a session token's claims (the current session's by default).

        Raises:
            ValidationError: If there is no token or it is malformed
        """
        token = token or (self._session.token if self._session else None)
        if not token:
            raise ValidationError("No session token to inspect")
        return self._tokens.inspect(token)

    async def _authenticate(self) -> AuthResult:
        try:
            return await self._run_authentication()
        except AuthenticationError as e:
            return await self._fail(
                e.kind, e.message, e.details, retry_after_ms=e.details.get("retry_after_ms")
            )
        except Exception as e:
            logger.exception("Unexpected authentication error")
            return await self._fail(
                AuthErrorKind.AUTHENTICATION_FAILED,
                "Authentication failed",
                {"error": str(e)},
            )

    async def _run_authentication(self) -> AuthResult:
        """
        One pass of the challenge-response flow.

        Raises:
            AuthenticationError: For every rejected attempt
        """
        cached = await self._reusable_session()
        if cached is not None:
            logger.debug("Using existing valid session")
            return AuthResult.ok(cached)

        # Read after any stale session has been ended above
        generation = self._generation

        if self._security.is_account_locked():
            remaining = self._security.remaining_lockout_ms()
            raise AuthenticationError(
                AuthErrorKind.ACCOUNT_LOCKED,
                user_message(AuthErrorKind.ACCOUNT_LOCKED, remaining),
                {"retry_after_ms": remaining},
            )

        if not self._signer.is_connected():
            raise AuthenticationError(AuthErrorKind.WALLET_DISCONNECTED, "Wallet not connected")

        address = self._signer.get_address()
        if not address:
            raise AuthenticationError(
                AuthErrorKind.WALLET_DISCONNECTED, "No wallet address found"
            )

        challenge = create_challenge(address, self._clock(), self.config.app_name)
        logger.info(f"Requesting signature for challenge {challenge.nonce} from {address}")

        try:
            signature = await self._signer.sign_message(challenge.message)
        except Exception as e:
            raise AuthenticationError(
                AuthErrorKind.SIGNATURE_REJECTED,
                "Signature request was rejected",
                {"address": address, "error": str(e)},
            ) from e

        self._ensure_not_cancelled(generation, address)

        try:
            recovered = recover_signer(challenge.message, signature)
        except SignatureVerificationError as e:
            raise AuthenticationError(
                AuthErrorKind.INVALID_SIGNATURE, "Invalid signature", {"address": address}
            ) from e

        if not addresses_match(recovered, address):
            raise AuthenticationError(
                AuthErrorKind.INVALID_SIGNATURE,
                "Invalid signature",
                {"address": address, "recovered": recovered},
            )

        now = self._clock()
        if challenge.is_expired(now, self._challenge_expiry_ms):
            raise AuthenticationError(
                AuthErrorKind.CHALLENGE_EXPIRED,
                "Challenge expired",
                {"address": address, "age_ms": challenge.age(now)},
            )

        try:
            session = await self._issue_session(address, now)
        except Exception as e:
            logger.exception("Session creation failed")
            raise AuthenticationError(
                AuthErrorKind.SESSION_CREATION_FAILED,
                "Failed to create session",
                {"address": address, "error": str(e)},
            ) from e

        await self._persist(session)
        if generation != self._generation:
            # Logged out while the session was being written
            await self._clear_persisted()
        self._ensure_not_cancelled(generation, address)

        await self._security.record_event(
            SecurityEventType.LOGIN_SUCCESS,
            {"address": session.user.address, "session_id": session.user.session_id},
        )
        # A logout during the await above erases the stored session
        self._ensure_not_cancelled(generation, address)

        self._session = session

        result = AuthResult.ok(session)
        self._emitter.emit(WalletEvent.AUTHENTICATED, result)
        logger.info(f"Authentication successful for {session.user.address}")
        return result

    def _ensure_not_cancelled(self, generation: int, address: str) -> None:
        if generation != self._generation:
            raise AuthenticationError(
                AuthErrorKind.SESSION_CREATION_FAILED,
                "Authentication was cancelled",
                {"address": address},
            )

    async def _reusable_session(self) -> Session | None:
        """The current session if it may be returned as-is; ends stale sessions."""
        session = self._session
        if session is None:
            return None

        if session.is_expired(self._clock()):
            logger.info("Session expired")
            await self._security.record_event(
                SecurityEventType.SESSION_EXPIRED, {"address": session.user.address}
            )
            await self._end_session("expired", disconnect_wallet=False)
            return None

        if not self._signer.is_connected():
            await self._end_session("wallet_disconnected", disconnect_wallet=False)
            return None

        address = self._signer.get_address()
        if address and not addresses_match(address, session.user.address):
            await self._end_session("account_changed", disconnect_wallet=False)
            return None

        return session

    async def _issue_session(self, address: str, now: int) -> Session:
        user = AuthUser(
            address=address,
            is_verified=True,
            login_time=now,
            last_activity=now,
            session_id=f"auth_{secrets.token_urlsafe(16)}",
        )

        if self._ens_resolver is not None:
            try:
                user.ens_name = await self._ens_resolver(user.address)
            except Exception as e:
                logger.info(f"ENS resolution failed: {e}")

        expires_at = now + self._session_ttl_ms
        token = self._tokens.issue(user, now, expires_at)
        return Session(user=user, token=token, expires_at=expires_at)

    async def _end_session(self, reason: str, *, disconnect_wallet: bool) -> bool:
        """Drop the session everywhere; emits LOGGED_OUT if one was active."""
        self._generation += 1
        session = self._session
        self._session = None

        await self._clear_persisted()

        if disconnect_wallet:
            try:
                await self._signer.disconnect()
            except Exception as e:
                logger.warning(f"Wallet disconnect failed: {e}")

        if session is None:
            return False

        logger.info(f"Session for {session.user.address} ended ({reason})")
        self._emitter.emit(
            WalletEvent.LOGGED_OUT, {"address": session.user.address, "reason": reason}
        )
        return True

    async def _fail(
        self,
        kind: AuthErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
        retry_after_ms: int | None = None,
    ) -> AuthResult:
        details = {"reason": kind.value, **(details or {})}
        await self._security.record_event(SecurityEventType.LOGIN_FAILURE, details)

        error = AppError.from_kind(kind, message, details, timestamp=self._clock())
        try:
            self._reporter.report(error)
        except Exception:
            logger.exception("Error reporter failed")
        self._emitter.emit(WalletEvent.ERROR, error)

        logger.warning(f"Authentication failed ({kind.value}): {message}")
        return AuthResult.failure(kind, message, retry_after_ms)

    async def _persist(self, session: Session) -> None:
        try:
            await self._repository.save(session)
        except StorageError as e:
            logger.warning(f"Failed to save session: {e.details}")

    async def _clear_persisted(self) -> None:
        try:
            await self._repository.clear()
        except StorageError as e:
            logger.warning(f"Failed to clear session: {e.details}")

    def _clear_in_flight(self, task: asyncio.Task) -> None:
        if self._in_flight is task:
            self._in_flight = None
