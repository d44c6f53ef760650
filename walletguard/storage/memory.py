"""In-memory SecureStore implementation."""

from collections.abc import Iterable

from walletguard.protocols import SecureStore


class MemorySecureStore(SecureStore):
    """Dictionary-backed store.

    State survives as long as the instance does, which lets tests simulate an
    app restart by building fresh services over the same store.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"SecureStore values must be strings, got {type(value)!r}")
        self._data[key] = value

    async def remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def keys(self) -> "set[str]":
        return set(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
