"""Turn a DataHub ``properties`` object into publishable values.

Formatting policy:
  temperature   1 dp   (screenTemperature, degC)
  humidity      0 dp   (screenRelativeHumidity, %)
  pressure      0 dp   (mslp, Pa -> mbar)

Rounding is half-up on the shortest decimal form of the reading, so a
reported 9.95 degC shows as "10.0" rather than falling foul of its binary
representation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
from typing import Any

_LOGGER = logging.getLogger(__name__)

ONE_DP = Decimal("0.1")
ZERO_DP = Decimal("1")
PASCALS_PER_MILLIBAR = Decimal(100)

FIELD_TIME = "time"
FIELD_TEMPERATURE = "screenTemperature"
FIELD_HUMIDITY = "screenRelativeHumidity"
FIELD_PRESSURE = "mslp"


@dataclass(frozen=True)
class MappedValues:
    """Values derived from the most recent reading of one response."""

    temperature: str | None = None
    humidity: str | None = None
    pressure: str | None = None
    location_name: str | None = None
    model_run_date: str | None = None
    time: str | None = None
    latest: dict[str, Any] = field(default_factory=dict)

    @property
    def is_partial(self) -> bool:
        return self.temperature is None or self.humidity is None or self.pressure is None


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            d = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
        except InvalidOperation:
            return None
        return d if d.is_finite() else None
    return None


def format_number(value: Any, quantum: Decimal, scale: Decimal | None = None) -> str | None:
    """Format a numeric reading, or return None if it is not a number."""
    d = _to_decimal(value)
    if d is None:
        return None
    if scale is not None:
        d = d / scale
    d = d.quantize(quantum, rounding=ROUND_HALF_UP)
    if d.is_zero():
        d = abs(d)
    return f"{d:f}"


def format_temperature(value: Any) -> str | None:
    return format_number(value, ONE_DP)


def format_humidity(value: Any) -> str | None:
    return format_number(value, ZERO_DP)


def format_pressure(value_pa: Any) -> str | None:
    """Sea-level pressure in Pa, formatted as whole millibars."""
    return format_number(value_pa, ZERO_DP, scale=PASCALS_PER_MILLIBAR)


def latest_reading(properties: dict[str, Any]) -> dict[str, Any]:
    """Index 0 of ``timeSeries`` (the most recent), or an empty dict."""
    series = properties.get("timeSeries") or []
    if not isinstance(series, list) or not series:
        return {}
    first = series[0]
    return first if isinstance(first, dict) else {}


def map_properties(properties: dict[str, Any]) -> MappedValues:
    location = properties.get("location") or {}
    if not isinstance(location, dict):
        location = {}
    latest = latest_reading(properties)

    values = MappedValues(
        temperature=format_temperature(latest.get(FIELD_TEMPERATURE)),
        humidity=format_humidity(latest.get(FIELD_HUMIDITY)),
        pressure=format_pressure(latest.get(FIELD_PRESSURE)),
        location_name=location.get("name"),
        model_run_date=properties.get("modelRunDate"),
        time=latest.get(FIELD_TIME),
        latest=dict(latest),
    )

    if values.is_partial:
        missing = [
            name
            for name, formatted in (
                (FIELD_TEMPERATURE, values.temperature),
                (FIELD_HUMIDITY, values.humidity),
                (FIELD_PRESSURE, values.pressure),
            )
            if formatted is None
        ]
        _LOGGER.debug("Latest reading has no usable value for: %s", ", ".join(missing))
    return values
