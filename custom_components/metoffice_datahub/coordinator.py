"""Coordinator for Met Office DataHub.

Wires the polling pieces to Home Assistant:
  DataHubClient   shared aiohttp session, apikey header
  PollCycle       fetch -> parse -> map -> publish
  StateStore      per-entity key/value state read by the sensor platform
  PollScheduler   delayed first poll, then re-armed via async_call_later

The coordinator never schedules refreshes itself (``update_interval=None``);
entities are told about new state once per published cycle.
"""

from __future__ import annotations

from functools import partial
import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_call_later
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .api import DataHubClient
from .config import DataHubConfig, PollTarget, build_poll_target
from .const import DEFAULT_STARTUP_DELAY_S
from .parser import PayloadRecorder
from .poll import CycleOutcome, PollCycle
from .scheduler import PollScheduler
from .store import StateStore

_LOGGER = logging.getLogger(__name__)


class DataHubCoordinator(DataUpdateCoordinator[dict[str, dict[str, Any]]]):
    """Owns the state store and the polling loop for one config entry."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry, config: DataHubConfig) -> None:
        self.hass = hass
        self.entry_id = entry.entry_id
        self.config = config
        self.target: PollTarget = build_poll_target(entry.entry_id, config)

        self.store = StateStore()
        self.recorder = PayloadRecorder()
        self.client = DataHubClient(async_get_clientsession(hass), config.api_key)
        self.cycle = PollCycle(self.client.async_fetch, self.store, self.recorder)

        super().__init__(
            hass,
            logger=_LOGGER,
            config_entry=entry,
            name="Met Office DataHub",
            update_interval=None,
        )

        self.scheduler = PollScheduler(
            partial(async_call_later, hass),
            self._async_poll,
            self.target,
            startup_delay=DEFAULT_STARTUP_DELAY_S,
            interval=config.scan_interval_s,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_start(self) -> None:
        _LOGGER.debug(
            "Starting Met Office DataHub polling for %.4f, %.4f every %s min",
            self.target.latitude,
            self.target.longitude,
            self.config.scan_interval_min,
        )
        self.scheduler.start()

    async def async_stop(self) -> None:
        self.scheduler.stop()

    async def _async_poll(self, target: PollTarget) -> CycleOutcome:
        outcome = await self.cycle.async_run(target)
        if outcome is not CycleOutcome.FAILED:
            self.async_set_updated_data(self.store.snapshot_all())
        return outcome

    async def _async_update_data(self) -> dict[str, dict[str, Any]]:
        return self.store.snapshot_all()

    def diagnostics(self) -> dict[str, Any]:
        t = self.target
        return {
            "target": {
                "primary_entity_id": t.primary_entity_id,
                "temperature_entity_id": t.temperature_entity_id,
                "humidity_entity_id": t.humidity_entity_id,
            },
            "scheduler": {
                "armed": self.scheduler.armed,
                "cycles_run": self.scheduler.cycles_run,
                "interval_s": self.scheduler.interval,
            },
            "state": self.store.snapshot_all(),
            "last_response": self.recorder.as_dict(),
        }
