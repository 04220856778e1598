"""Self-rearming polling loop.

A single timer handle is held at any time. Each firing runs one cycle to
completion and then arms the next one, so cycles can never overlap and the
cadence does not depend on whether a cycle succeeded.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
import logging
from typing import Any

from .config import PollTarget

_LOGGER = logging.getLogger(__name__)

Action = Callable[[datetime], Awaitable[None]]
CallLater = Callable[[float, Action], Callable[[], None]]
Cycle = Callable[[PollTarget], Awaitable[Any]]


class PollScheduler:
    def __init__(
        self,
        call_later: CallLater,
        cycle: Cycle,
        target: PollTarget,
        *,
        startup_delay: float,
        interval: float,
        name: str = "DataHub polling",
    ) -> None:
        self._call_later = call_later
        self._cycle = cycle
        self._target = target
        self.startup_delay = startup_delay
        self.interval = interval
        self.name = name
        self._cancel: Callable[[], None] | None = None
        self._stopped = False
        self.cycles_run = 0

    @property
    def armed(self) -> bool:
        return self._cancel is not None

    def start(self) -> None:
        """Arm the one-shot delayed first cycle. No-op while a timer is pending."""
        self._stopped = False
        if self._cancel is not None:
            return
        _LOGGER.debug("%s: first poll in %s s", self.name, self.startup_delay)
        self._arm(self.startup_delay)

    def stop(self) -> None:
        self._stopped = True
        if self._cancel is not None:
            self._cancel()
            self._cancel = None

    def _arm(self, delay: float) -> None:
        self._cancel = self._call_later(delay, self._async_fire)

    async def _async_fire(self, _now: datetime) -> None:
        self._cancel = None
        try:
            await self._cycle(self._target)
        finally:
            self.cycles_run += 1
            if not self._stopped and self._cancel is None:
                _LOGGER.debug("%s: next poll in %s s", self.name, self.interval)
                self._arm(self.interval)
