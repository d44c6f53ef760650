"""Observer-list event emitter used by the authenticator and policy engine.

Handlers are plain callables registered per event name. They run in
registration order and a handler that raises is logged and skipped, so one
listener can never break another listener or the call that emitted the event.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from .types import WalletEvent

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class EventEmitter:
    """Synchronous pub/sub with removal by handler identity.

    Examples:
        ```python
        emitter = EventEmitter()
        emitter.on(WalletEvent.LOGGED_OUT, lambda payload: print("bye"))
        emitter.emit(WalletEvent.LOGGED_OUT, {})
        ```
    """

    def __init__(self, name: str = "walletguard"):
        self.name = name
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, event: WalletEvent | str, handler: Handler) -> None:
        self._handlers[self._key(event)].append(handler)

    def off(self, event: WalletEvent | str, handler: Handler) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(self._key(event))
        if not handlers:
            return

        for index, registered in enumerate(handlers):
            if registered is handler:
                del handlers[index]
                return

    def emit(self, event: WalletEvent | str, payload: Any = None) -> None:
        key = self._key(event)
        # Snapshot so handlers may unsubscribe while being called
        for handler in list(self._handlers.get(key, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"{self.name}: listener error for '{key}'")

    def listener_count(self, event: WalletEvent | str) -> int:
        return len(self._handlers.get(self._key(event), ()))

    @staticmethod
    def _key(event: WalletEvent | str) -> str:
        return event.value if isinstance(event, WalletEvent) else str(event)
