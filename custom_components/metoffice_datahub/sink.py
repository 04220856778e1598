"""Apply mapped values to the primary entity and its satellites."""

from __future__ import annotations

from collections.abc import Callable
import logging
import time

from .config import PollTarget
from .const import (
    KEY_CURRENT_LEVEL,
    KEY_CURRENT_TEMPERATURE,
    KEY_LAST_UPDATE,
    KEY_LOCATION_NAME,
    KEY_MAX_TEMP,
    KEY_MIN_TEMP,
    KEY_MODEL_RUN_DATE,
    KEY_PRESSURE,
)
from .mapper import MappedValues
from .store import EntityStore, latest_key

_LOGGER = logging.getLogger(__name__)


def publish(
    store: EntityStore,
    target: PollTarget,
    values: MappedValues,
    clock: Callable[[], float] = time.time,
) -> None:
    """Write one cycle's values. Absent values leave their keys untouched."""
    primary = target.primary_entity_id

    if values.location_name is not None:
        store.set(primary, KEY_LOCATION_NAME, values.location_name)
    if values.model_run_date is not None:
        store.set(primary, KEY_MODEL_RUN_DATE, values.model_run_date)

    for name, value in values.latest.items():
        store.set(primary, latest_key(name), value)

    t = values.temperature
    if t is not None:
        store.set(primary, KEY_CURRENT_TEMPERATURE, t)
        # Max/Min are collapsed to the current reading; extrema are tracked downstream
        store.set(primary, KEY_MAX_TEMP, t)
        store.set(primary, KEY_MIN_TEMP, t)
        if target.temperature_entity_id:
            store.set(target.temperature_entity_id, KEY_CURRENT_TEMPERATURE, t)

    h = values.humidity
    if h is not None:
        store.set(primary, KEY_CURRENT_LEVEL, h)
        if target.humidity_entity_id:
            store.set(target.humidity_entity_id, KEY_CURRENT_LEVEL, h)

    if values.pressure is not None:
        store.set(primary, KEY_PRESSURE, values.pressure)

    store.set(primary, KEY_LAST_UPDATE, int(clock()))
    _LOGGER.info("Met Office DataHub: %s", values.time)
