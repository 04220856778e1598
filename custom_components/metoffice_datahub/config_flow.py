"""Config flow for Met Office DataHub.

Setup asks for the DataHub API key, the forecast point (prefilled from the
Home Assistant home location) and which satellite entities to create. The
Options flow (Configure button) exposes everything except the key, plus the
polling interval.
"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.helpers import selector

from .config import ConfigurationError, build_config
from .const import (
    CHILD_HUMIDITY,
    CHILD_TEMPERATURE,
    CONF_API_KEY,
    CONF_CHILDREN,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_SCAN_INTERVAL_MIN,
    CONFIG_VERSION,
    DEFAULT_NAME,
    DEFAULT_SCAN_INTERVAL_MIN,
    DOMAIN,
    MAX_SCAN_INTERVAL_MIN,
    MIN_SCAN_INTERVAL_MIN,
    NAME_HUMIDITY,
    NAME_TEMPERATURE,
)

_LOGGER = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_CHILDREN_SELECTOR = selector.SelectSelector(
    selector.SelectSelectorConfig(
        options=[
            {"value": CHILD_TEMPERATURE, "label": NAME_TEMPERATURE},
            {"value": CHILD_HUMIDITY, "label": NAME_HUMIDITY},
        ],
        multiple=True,
        mode="list",
    )
)


def _coordinate_fields(default_lat: float, default_lon: float) -> dict:
    return {
        vol.Required(CONF_LATITUDE, default=round(default_lat, 4)): selector.NumberSelector(
            selector.NumberSelectorConfig(min=-90, max=90, step=0.0001, mode="box")
        ),
        vol.Required(CONF_LONGITUDE, default=round(default_lon, 4)): selector.NumberSelector(
            selector.NumberSelectorConfig(min=-180, max=180, step=0.0001, mode="box")
        ),
    }


def _validate(hass, data: dict[str, Any], options: dict[str, Any] | None = None) -> dict[str, str]:
    errors: dict[str, str] = {}
    try:
        build_config(
            data,
            options,
            default_latitude=hass.config.latitude,
            default_longitude=hass.config.longitude,
        )
    except ConfigurationError as err:
        _LOGGER.debug("Rejected DataHub configuration: %s", err)
        errors["base"] = "invalid_config"
    return errors


# ---------------------------------------------------------------------------
# Config Flow
# ---------------------------------------------------------------------------


class DataHubConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = CONFIG_VERSION

    @staticmethod
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        return DataHubOptionsFlowHandler()

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        errors: dict[str, str] = {}

        if user_input is not None:
            data = dict(user_input)
            data[CONF_API_KEY] = str(data.get(CONF_API_KEY) or "").strip()
            if not data[CONF_API_KEY]:
                errors[CONF_API_KEY] = "required"
            else:
                errors = _validate(self.hass, data)
            if not errors:
                await self.async_set_unique_id(f"{data[CONF_LATITUDE]:.4f}_{data[CONF_LONGITUDE]:.4f}")
                self._abort_if_unique_id_configured()
                return self.async_create_entry(title=DEFAULT_NAME, data=data)

        default_lat = getattr(self.hass.config, "latitude", 0.0) or 0.0
        default_lon = getattr(self.hass.config, "longitude", 0.0) or 0.0

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_API_KEY): selector.TextSelector(
                        selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)
                    ),
                    **_coordinate_fields(default_lat, default_lon),
                    vol.Optional(
                        CONF_CHILDREN, default=[CHILD_TEMPERATURE, CHILD_HUMIDITY]
                    ): _CHILDREN_SELECTOR,
                }
            ),
            errors=errors,
        )


class DataHubOptionsFlowHandler(config_entries.OptionsFlow):
    """Options flow handler. self.config_entry is provided by parent class."""

    def _get(self, key: str, default: Any) -> Any:
        return self.config_entry.options.get(key, self.config_entry.data.get(key, default))

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        errors: dict[str, str] = {}

        if user_input is not None:
            out = dict(user_input)
            out[CONF_SCAN_INTERVAL_MIN] = int(out.get(CONF_SCAN_INTERVAL_MIN, DEFAULT_SCAN_INTERVAL_MIN))
            errors = _validate(self.hass, dict(self.config_entry.data), out)
            if not errors:
                return self.async_create_entry(title="", data=out)

        children = self._get(CONF_CHILDREN, [CHILD_TEMPERATURE, CHILD_HUMIDITY])
        if isinstance(children, str):
            children = [flag for flag in (CHILD_TEMPERATURE, CHILD_HUMIDITY) if flag in children]

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    **_coordinate_fields(
                        float(self._get(CONF_LATITUDE, self.hass.config.latitude) or 0.0),
                        float(self._get(CONF_LONGITUDE, self.hass.config.longitude) or 0.0),
                    ),
                    vol.Optional(CONF_CHILDREN, default=children): _CHILDREN_SELECTOR,
                    vol.Optional(
                        CONF_SCAN_INTERVAL_MIN,
                        default=int(self._get(CONF_SCAN_INTERVAL_MIN, DEFAULT_SCAN_INTERVAL_MIN)),
                    ): selector.NumberSelector(
                        selector.NumberSelectorConfig(
                            min=MIN_SCAN_INTERVAL_MIN,
                            max=MAX_SCAN_INTERVAL_MIN,
                            step=1,
                            mode="box",
                            unit_of_measurement="min",
                        )
                    ),
                }
            ),
            errors=errors,
        )
