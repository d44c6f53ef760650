"""Persistence adapter for security policy state."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import StorageError
from ..protocols import SecureStore
from ..types import SecurityEvent, SecurityMetrics

logger = logging.getLogger(__name__)


class SecurityStorageKeys:
    METRICS = "security_metrics"
    EVENTS = "security_events"
    RATE_LIMITS = "rate_limit_data"

    ALL = (METRICS, EVENTS, RATE_LIMITS)


@dataclass
class SecurityState:
    """Everything the policy engine persists between runs."""

    metrics: SecurityMetrics = field(default_factory=SecurityMetrics)
    events: list[SecurityEvent] = field(default_factory=list)
    rate_limits: dict[str, Any] = field(default_factory=dict)


class SecurityStateRepository:
    """Reads and writes SecurityState as JSON under distinct store keys.

    Each key is decoded independently; a corrupt entry is logged and replaced
    by its default instead of discarding the whole state.
    """

    def __init__(self, store: SecureStore):
        self.store = store

    async def save(self, state: SecurityState) -> None:
        """Write all three keys.

        Raises:
            StorageError: If the store rejects a write
        """
        payloads = {
            SecurityStorageKeys.METRICS: state.metrics.to_dict(),
            SecurityStorageKeys.EVENTS: [event.to_dict() for event in state.events],
            SecurityStorageKeys.RATE_LIMITS: state.rate_limits,
        }
        try:
            for name, payload in payloads.items():
                await self.store.set(name, json.dumps(payload))
        except Exception as e:
            raise StorageError("Failed to save security state", {"error": str(e)}) from e

    async def load(self) -> SecurityState:
        """Read persisted state; missing keys yield defaults.

        Raises:
            StorageError: If the store itself cannot be read
        """
        try:
            raw_metrics = await self.store.get(SecurityStorageKeys.METRICS)
            raw_events = await self.store.get(SecurityStorageKeys.EVENTS)
            raw_limits = await self.store.get(SecurityStorageKeys.RATE_LIMITS)
        except Exception as e:
            raise StorageError("Failed to load security state", {"error": str(e)}) from e

        state = SecurityState()

        metrics = self._decode(SecurityStorageKeys.METRICS, raw_metrics)
        if isinstance(metrics, dict):
            try:
                state.metrics = SecurityMetrics.from_dict(metrics)
            except (TypeError, ValueError) as e:
                logger.warning(f"Discarding unreadable security metrics: {e}")

        events = self._decode(SecurityStorageKeys.EVENTS, raw_events)
        if isinstance(events, list):
            for item in events:
                try:
                    state.events.append(SecurityEvent.from_dict(item))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping unreadable security event: {e}")

        limits = self._decode(SecurityStorageKeys.RATE_LIMITS, raw_limits)
        if isinstance(limits, dict):
            state.rate_limits = limits

        return state

    async def clear(self) -> None:
        try:
            await self.store.remove(list(SecurityStorageKeys.ALL))
        except Exception as e:
            raise StorageError("Failed to clear security state", {"error": str(e)}) from e

    @staticmethod
    def _decode(name: str, raw: str | None) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt '{name}' entry: {e}")
            return None
