"""Storage backends for persisted session and security state."""

from .memory import MemorySecureStore

__all__ = ["MemorySecureStore"]
