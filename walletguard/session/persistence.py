"""Persistence adapter for the authenticated session."""

import json
import logging

from ..exceptions import StorageError
from ..protocols import SecureStore
from ..types import Session

logger = logging.getLogger(__name__)


class SessionStorageKeys:
    SESSION = "auth_session"
    USER = "auth_user"
    TOKEN = "auth_token"

    ALL = (SESSION, USER, TOKEN)


class SessionRepository:
    """Saves, loads and erases the session under the auth storage keys."""

    def __init__(self, store: SecureStore):
        self.store = store

    async def save(self, session: Session) -> None:
        """
        Persist the session.

        Raises:
            StorageError: If the store rejects a write
        """
        try:
            await self.store.set(SessionStorageKeys.SESSION, json.dumps(session.to_dict()))
            await self.store.set(SessionStorageKeys.USER, json.dumps(session.user.to_dict()))
            await self.store.set(SessionStorageKeys.TOKEN, session.token)
        except Exception as e:
            raise StorageError("Failed to save session", {"error": str(e)}) from e

    async def load(self) -> Session | None:
        """
        Read the persisted session.

        Returns:
            The stored session, or None when nothing is stored. Expiry is not
            checked here.

        Raises:
            StorageError: If the store cannot be read or the entry is corrupt
        """
        try:
            raw = await self.store.get(SessionStorageKeys.SESSION)
        except Exception as e:
            raise StorageError("Failed to load session", {"error": str(e)}) from e

        if raw is None:
            return None

        try:
            return Session.from_dict(json.loads(raw))
        except Exception as e:
            raise StorageError("Stored session is corrupt", {"error": str(e)}) from e

    async def clear(self) -> None:
        try:
            await self.store.remove(list(SessionStorageKeys.ALL))
        except Exception as e:
            raise StorageError("Failed to clear session", {"error": str(e)}) from e
