"""One fetch -> parse -> map -> publish pass.

    Fetch ──ok──> Parse ──ok──> Map & Publish ──> Done
      │             │
      └─ transport  └─ malformed / missing properties
         error         (logged with raw body, nothing written)
         (logged; error body recorded, never decoded)

``PollCycle.async_run`` never raises. Entities are only notified after a
non-FAILED outcome; the scheduler re-arms regardless.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
import logging
import time

from .api import DataHubTransportError
from .config import PollTarget
from .mapper import map_properties
from .parser import MalformedPayloadError, MissingPropertiesError, PayloadRecorder, parse_response
from .sink import publish
from .store import EntityStore

_LOGGER = logging.getLogger(__name__)

Fetch = Callable[[float, float], Awaitable[str]]


class CycleOutcome(str, Enum):
    UPDATED = "updated"
    PARTIAL = "partial"
    FAILED = "failed"


class PollCycle:
    """Runs a single polling pass against an injected fetch and store."""

    def __init__(
        self,
        fetch: Fetch,
        store: EntityStore,
        recorder: PayloadRecorder | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetch = fetch
        self._store = store
        self._recorder = recorder
        self._clock = clock

    async def async_run(self, target: PollTarget) -> CycleOutcome:
        try:
            return await self._async_run(target)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Unexpected error during Met Office DataHub poll")
            return CycleOutcome.FAILED

    async def _async_run(self, target: PollTarget) -> CycleOutcome:
        accepted = True
        try:
            raw = await self._fetch(target.latitude, target.longitude)
        except DataHubTransportError as err:
            _LOGGER.error(
                "Error polling Met Office DataHub, return code = %s (%s)",
                err.status if err.status is not None else "none",
                err,
            )
            raw, accepted = err.body, False

        try:
            properties = parse_response(raw, self._recorder, accepted=accepted)
        except MalformedPayloadError as err:
            _LOGGER.error("Met Office DataHub returned invalid JSON: %s", err.raw)
            return CycleOutcome.FAILED
        except MissingPropertiesError as err:
            _LOGGER.error("Met Office DataHub features collection missing: %s", err.raw)
            return CycleOutcome.FAILED

        values = map_properties(properties)
        publish(self._store, target, values, clock=self._clock)
        return CycleOutcome.PARTIAL if values.is_partial else CycleOutcome.UPDATED
