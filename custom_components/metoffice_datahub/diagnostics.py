"""Diagnostics support for Met Office DataHub."""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import CONF_API_KEY, CONF_LATITUDE, CONF_LONGITUDE, DOMAIN, INTEGRATION_VERSION

REDACTED = "**REDACTED**"


def _redact(d: dict[str, Any]) -> dict[str, Any]:
    """Hide the API key and the configured location."""
    out = dict(d)
    if CONF_API_KEY in out:
        out[CONF_API_KEY] = REDACTED
    out.pop(CONF_LATITUDE, None)
    out.pop(CONF_LONGITUDE, None)
    return out


async def async_get_config_entry_diagnostics(hass: HomeAssistant, entry: ConfigEntry) -> dict[str, Any]:
    """Return diagnostics for a config entry.

    The last raw response is included verbatim; it is what you need when the
    DataHub changes its payload shape.
    """
    coord = hass.data.get(DOMAIN, {}).get(entry.entry_id)

    return {
        "title": entry.title,
        "version": INTEGRATION_VERSION,
        "entry_data": _redact(dict(entry.data)),
        "entry_options": _redact(dict(entry.options)),
        "coordinator": coord.diagnostics() if coord else {},
    }
