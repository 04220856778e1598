"""Sensors for Met Office DataHub.

Every sensor renders one ``(entity_id, key)`` of the coordinator's state store.
All of them are written together whenever the coordinator publishes a cycle.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE, UnitOfTemperature
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import EntityCategory
from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.util import dt as dt_util

from .const import (
    ATTRIBUTION,
    DOMAIN,
    KEY_CURRENT_LEVEL,
    KEY_CURRENT_TEMPERATURE,
    KEY_LAST_UPDATE,
    KEY_LOCATION_NAME,
    KEY_MAX_TEMP,
    KEY_MIN_TEMP,
    KEY_MODEL_RUN_DATE,
    KEY_PRESSURE,
    NS_LATEST,
    UNIT_PRESSURE_MBAR,
)
from .store import latest_key


def _float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _timestamp(value: Any):
    if value is None:
        return None
    try:
        return dt_util.utc_from_timestamp(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass(frozen=True, kw_only=True)
class DataHubSensorDescription:
    """Describes a DataHub sensor entity."""

    key: str
    slug: str
    name: str | None
    device_class: SensorDeviceClass | None = None
    entity_category: EntityCategory | None = None
    icon: str | None = None
    native_unit: str | None = None
    precision: int | None = None
    state_class: SensorStateClass | None = None
    value_fn: Callable[[Any], Any] | None = None
    with_latest_attrs: bool = False


PRIMARY_SENSORS: list[DataHubSensorDescription] = [
    DataHubSensorDescription(
        key=KEY_CURRENT_TEMPERATURE,
        slug="temperature",
        name="Temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        native_unit=UnitOfTemperature.CELSIUS,
        precision=1,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=_float,
    ),
    DataHubSensorDescription(
        key=KEY_MAX_TEMP,
        slug="max_temperature",
        name="Max Temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        native_unit=UnitOfTemperature.CELSIUS,
        precision=1,
        value_fn=_float,
    ),
    DataHubSensorDescription(
        key=KEY_MIN_TEMP,
        slug="min_temperature",
        name="Min Temperature",
        device_class=SensorDeviceClass.TEMPERATURE,
        native_unit=UnitOfTemperature.CELSIUS,
        precision=1,
        value_fn=_float,
    ),
    DataHubSensorDescription(
        key=KEY_CURRENT_LEVEL,
        slug="humidity",
        name="Humidity",
        device_class=SensorDeviceClass.HUMIDITY,
        native_unit=PERCENTAGE,
        precision=0,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=_float,
    ),
    DataHubSensorDescription(
        key=KEY_PRESSURE,
        slug="pressure",
        name="Sea-Level Pressure",
        icon="mdi:gauge",
        device_class=SensorDeviceClass.PRESSURE,
        native_unit=UNIT_PRESSURE_MBAR,
        precision=0,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=_float,
    ),
    DataHubSensorDescription(
        key=KEY_LOCATION_NAME,
        slug="location_name",
        name="Location",
        icon="mdi:map-marker",
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    DataHubSensorDescription(
        key=KEY_MODEL_RUN_DATE,
        slug="model_run_date",
        name="Model Run Date",
        icon="mdi:calendar-clock",
        entity_category=EntityCategory.DIAGNOSTIC,
    ),
    DataHubSensorDescription(
        key=KEY_LAST_UPDATE,
        slug="last_update",
        name="Last Update",
        device_class=SensorDeviceClass.TIMESTAMP,
        entity_category=EntityCategory.DIAGNOSTIC,
        value_fn=_timestamp,
    ),
    DataHubSensorDescription(
        key=latest_key("time"),
        slug="latest_observation",
        name="Latest Observation",
        icon="mdi:weather-partly-cloudy",
        with_latest_attrs=True,
    ),
]

TEMPERATURE_SENSOR = DataHubSensorDescription(
    key=KEY_CURRENT_TEMPERATURE,
    slug="temperature",
    name=None,  # takes the satellite device name
    device_class=SensorDeviceClass.TEMPERATURE,
    native_unit=UnitOfTemperature.CELSIUS,
    precision=1,
    state_class=SensorStateClass.MEASUREMENT,
    value_fn=_float,
)

HUMIDITY_SENSOR = DataHubSensorDescription(
    key=KEY_CURRENT_LEVEL,
    slug="humidity",
    name=None,
    device_class=SensorDeviceClass.HUMIDITY,
    native_unit=PERCENTAGE,
    precision=0,
    state_class=SensorStateClass.MEASUREMENT,
    value_fn=_float,
)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities) -> None:
    coordinator = hass.data[DOMAIN][entry.entry_id]
    target = coordinator.target

    entities: list[DataHubSensor] = [
        DataHubSensor(coordinator, desc, target.primary_entity_id)
        for desc in PRIMARY_SENSORS
    ]
    if target.temperature_entity_id:
        entities.append(
            DataHubSensor(coordinator, TEMPERATURE_SENSOR, target.temperature_entity_id)
        )
    if target.humidity_entity_id:
        entities.append(
            DataHubSensor(coordinator, HUMIDITY_SENSOR, target.humidity_entity_id)
        )
    async_add_entities(entities)


class DataHubSensor(CoordinatorEntity, SensorEntity):
    """One state-store key rendered as a sensor."""

    _attr_has_entity_name = True
    _attr_attribution = ATTRIBUTION

    def __init__(self, coordinator, desc: DataHubSensorDescription, store_entity_id: str):
        super().__init__(coordinator)
        self._desc = desc
        self._store_entity_id = store_entity_id

        self._attr_unique_id = f"{store_entity_id}_{desc.slug}"
        self._attr_name = desc.name
        self._attr_icon = desc.icon
        self._attr_device_class = desc.device_class
        self._attr_native_unit_of_measurement = desc.native_unit
        self._attr_state_class = desc.state_class
        if desc.precision is not None:
            self._attr_suggested_display_precision = desc.precision
        if desc.entity_category is not None:
            self._attr_entity_category = desc.entity_category

    @property
    def device_info(self):
        return {"identifiers": {(DOMAIN, self._store_entity_id)}}

    @property
    def native_value(self):
        raw = self.coordinator.store.get(self._store_entity_id, self._desc.key)
        if self._desc.value_fn is not None:
            return self._desc.value_fn(raw)
        return raw

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        if not self._desc.with_latest_attrs:
            return None
        return self.coordinator.store.namespace(self._store_entity_id, NS_LATEST)
