"""Startup configuration for Met Office DataHub.

Entry data and options are validated once, before polling starts, into an
immutable ``DataHubConfig``. Nothing is written back to the entry.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import (
    CHILD_HUMIDITY,
    CHILD_OPTIONS,
    CHILD_TEMPERATURE,
    CONF_API_KEY,
    CONF_CHILDREN,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_SCAN_INTERVAL_MIN,
    DEFAULT_CHILDREN,
    DEFAULT_SCAN_INTERVAL_MIN,
    MAX_SCAN_INTERVAL_MIN,
    MIN_SCAN_INTERVAL_MIN,
    SUFFIX_HUMIDITY,
    SUFFIX_TEMPERATURE,
)


class ConfigurationError(Exception):
    """Entry configuration cannot be used to start polling."""


def parse_children(value: Any) -> frozenset[str]:
    """Normalise the satellite entity selection.

    Accepts the free-text form ("T and H", "T", "H only") or a list of flags.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset(flag for flag in CHILD_OPTIONS if flag in value)
    if isinstance(value, (list, tuple, set, frozenset)):
        flags = set()
        for item in value:
            if not isinstance(item, str) or item not in CHILD_OPTIONS:
                raise vol.Invalid(f"unknown satellite entity flag: {item!r}")
            flags.add(item)
        return frozenset(flags)
    raise vol.Invalid(f"expected a string or list for {CONF_CHILDREN}")


def _non_empty_key(value: Any) -> str:
    key = vol.Coerce(str)(value).strip()
    if not key:
        raise vol.Invalid("API key must not be empty")
    return key


CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_API_KEY): _non_empty_key,
        vol.Optional(CONF_LATITUDE): vol.Any(None, vol.All(vol.Coerce(float), vol.Range(min=-90, max=90))),
        vol.Optional(CONF_LONGITUDE): vol.Any(None, vol.All(vol.Coerce(float), vol.Range(min=-180, max=180))),
        vol.Optional(CONF_CHILDREN, default=DEFAULT_CHILDREN): parse_children,
        vol.Optional(CONF_SCAN_INTERVAL_MIN, default=DEFAULT_SCAN_INTERVAL_MIN): vol.All(
            vol.Coerce(int), vol.Range(min=MIN_SCAN_INTERVAL_MIN, max=MAX_SCAN_INTERVAL_MIN)
        ),
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class DataHubConfig:
    api_key: str
    latitude: float
    longitude: float
    children: frozenset[str]
    scan_interval_min: int = DEFAULT_SCAN_INTERVAL_MIN

    @property
    def scan_interval_s(self) -> int:
        return self.scan_interval_min * 60


@dataclass(frozen=True)
class PollTarget:
    """Where one cycle writes, and for which location it asks."""

    primary_entity_id: str
    temperature_entity_id: str | None
    humidity_entity_id: str | None
    latitude: float
    longitude: float


def build_config(
    entry_data: Mapping[str, Any],
    entry_options: Mapping[str, Any] | None = None,
    *,
    default_latitude: Any = None,
    default_longitude: Any = None,
) -> DataHubConfig:
    """Validate entry data (options take precedence) into a DataHubConfig.

    Missing coordinates fall back to the host's home location. Raises
    ConfigurationError if anything required is missing or out of range.
    """
    merged = {**dict(entry_data), **dict(entry_options or {})}
    if merged.get(CONF_LATITUDE) is None:
        merged[CONF_LATITUDE] = default_latitude
    if merged.get(CONF_LONGITUDE) is None:
        merged[CONF_LONGITUDE] = default_longitude

    try:
        valid = CONFIG_SCHEMA(merged)
    except vol.Invalid as err:
        raise ConfigurationError(f"invalid configuration: {err}") from err

    lat, lon = valid.get(CONF_LATITUDE), valid.get(CONF_LONGITUDE)
    if lat is None or lon is None:
        raise ConfigurationError("no coordinates configured and no home location available")

    return DataHubConfig(
        api_key=valid[CONF_API_KEY],
        latitude=lat,
        longitude=lon,
        children=valid[CONF_CHILDREN],
        scan_interval_min=valid[CONF_SCAN_INTERVAL_MIN],
    )


def satellite_entity_id(primary_entity_id: str, suffix: str) -> str:
    return f"{primary_entity_id}_{suffix}"


def build_poll_target(primary_entity_id: str, config: DataHubConfig) -> PollTarget:
    temperature_id = humidity_id = None
    if CHILD_TEMPERATURE in config.children:
        temperature_id = satellite_entity_id(primary_entity_id, SUFFIX_TEMPERATURE)
    if CHILD_HUMIDITY in config.children:
        humidity_id = satellite_entity_id(primary_entity_id, SUFFIX_HUMIDITY)
    return PollTarget(
        primary_entity_id=primary_entity_id,
        temperature_entity_id=temperature_id,
        humidity_entity_id=humidity_id,
        latitude=config.latitude,
        longitude=config.longitude,
    )
