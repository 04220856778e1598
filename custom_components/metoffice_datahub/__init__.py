"""Met Office DataHub integration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr

from .config import ConfigurationError, build_config
from .const import (
    CONFIG_VERSION,
    DEFAULT_NAME,
    DOMAIN,
    INTEGRATION_VERSION,
    NAME_HUMIDITY,
    NAME_TEMPERATURE,
    PLATFORMS,
)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)
_LOGGER = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .coordinator import DataHubCoordinator


async def async_migrate_entry(hass: HomeAssistant, entry) -> bool:
    """Handle config entry schema version migrations."""
    if entry.version == CONFIG_VERSION:
        return True
    _LOGGER.error("Unknown config entry version %s -- cannot migrate", entry.version)
    return False


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    from .coordinator import DataHubCoordinator

    try:
        config = build_config(
            entry.data,
            entry.options,
            default_latitude=hass.config.latitude,
            default_longitude=hass.config.longitude,
        )
    except ConfigurationError as err:
        _LOGGER.error("Cannot start Met Office DataHub (%s): %s", entry.title, err)
        return False

    coordinator = DataHubCoordinator(hass, entry, config)
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    # Primary device plus one linked device per satellite entity
    dev_reg = dr.async_get(hass)
    dev_reg.async_get_or_create(
        config_entry_id=entry.entry_id,
        identifiers={(DOMAIN, entry.entry_id)},
        name=entry.title or DEFAULT_NAME,
        manufacturer="Met Office",
        model="Weather DataHub site-specific",
        sw_version=INTEGRATION_VERSION,
    )
    target = coordinator.target
    for child_id, child_name in (
        (target.temperature_entity_id, NAME_TEMPERATURE),
        (target.humidity_entity_id, NAME_HUMIDITY),
    ):
        if child_id:
            dev_reg.async_get_or_create(
                config_entry_id=entry.entry_id,
                identifiers={(DOMAIN, child_id)},
                name=child_name,
                manufacturer="Met Office",
                model="Weather DataHub site-specific",
                via_device=(DOMAIN, entry.entry_id),
            )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Reload the entry whenever the user saves new options
    entry.async_on_unload(entry.add_update_listener(async_update_options))

    await coordinator.async_start()
    return True


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    coordinator: DataHubCoordinator | None = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if coordinator is not None:
        await coordinator.async_stop()
    return unload_ok
