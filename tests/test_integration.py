"""Integration tests for Met Office DataHub.

Tests the HTTP client, entry setup wiring, sensor entities, diagnostics and
packaging metadata -- all with a mocked HA environment.
"""

import asyncio
import json
import os
import sys
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from custom_components.metoffice_datahub.api import DataHubClient, DataHubTransportError, build_params
from custom_components.metoffice_datahub.config import DataHubConfig
from custom_components.metoffice_datahub.const import (
    CONF_API_KEY,
    CONF_CHILDREN,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    DATAHUB_URL,
    DOMAIN,
    INTEGRATION_VERSION,
    KEY_CURRENT_TEMPERATURE,
    KEY_LAST_UPDATE,
    KEY_PRESSURE,
)
from custom_components.metoffice_datahub.store import StateStore

ROOT = os.path.join(os.path.dirname(__file__), "..")
COMPONENT = os.path.join(ROOT, "custom_components", DOMAIN)

CANNED = json.dumps(
    {
        "features": [
            {
                "properties": {
                    "location": {"name": "TestTown"},
                    "modelRunDate": "2024-01-01T00:00Z",
                    "timeSeries": [
                        {
                            "time": "2024-01-01T01:00Z",
                            "screenTemperature": 9.95,
                            "screenRelativeHumidity": 81.4,
                            "mslp": 100500,
                        }
                    ],
                }
            }
        ]
    }
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(status=200, body=CANNED, bodies=None):
    """aiohttp-like session whose get() is an async context manager."""
    resp = MagicMock()
    resp.status = status
    if bodies is not None:
        resp.text = AsyncMock(side_effect=bodies)
    else:
        resp.text = AsyncMock(return_value=body)
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=resp)
    ctx.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.get = MagicMock(return_value=ctx)
    return session


def _hass():
    hass = MagicMock()
    hass.config.latitude = 51.5
    hass.config.longitude = -0.12
    hass.data = {}
    hass.config_entries.async_forward_entry_setups = AsyncMock()
    return hass


def _entry(data=None, options=None, entry_id="entry1"):
    entry = MagicMock()
    entry.entry_id = entry_id
    entry.title = "Met Office DataHub"
    entry.data = data if data is not None else {CONF_API_KEY: "secret-key", CONF_CHILDREN: ["T", "H"]}
    entry.options = options or {}
    return entry


# ===========================================================================
# HTTP client
# ===========================================================================


class TestDataHubClient:
    def test_request_shape(self):
        session = _session()
        client = DataHubClient(session, "secret-key")
        body = asyncio.run(client.async_fetch(50.72, -3.53))

        assert body == CANNED
        args, kwargs = session.get.call_args
        assert args[0] == DATAHUB_URL
        assert kwargs["headers"] == {"apikey": "secret-key"}
        assert kwargs["params"] == {
            "excludeParameterMetadata": "true",
            "includeLocationName": "true",
            "latitude": "50.72",
            "longitude": "-3.53",
        }

    def test_non_200_raises_with_status(self):
        client = DataHubClient(_session(status=401, body='{"message":"denied"}'), "bad")
        with pytest.raises(DataHubTransportError) as exc:
            asyncio.run(client.async_fetch(0, 0))
        assert exc.value.status == 401
        assert exc.value.body == '{"message":"denied"}'

    def test_connection_error(self):
        session = MagicMock()
        session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client = DataHubClient(session, "k")
        with pytest.raises(DataHubTransportError) as exc:
            asyncio.run(client.async_fetch(0, 0))
        assert exc.value.status is None

    def test_timeout(self):
        session = MagicMock()
        session.get = MagicMock(side_effect=asyncio.TimeoutError())
        client = DataHubClient(session, "k")
        with pytest.raises(DataHubTransportError):
            asyncio.run(client.async_fetch(0, 0))

    def test_build_params(self):
        assert build_params(1.5, 2)["latitude"] == "1.5"
        assert build_params(1.5, 2)["longitude"] == "2"


# ===========================================================================
# Entry setup
# ===========================================================================


class TestEntrySetup:
    def test_setup_polls_and_rearms(self):
        from custom_components.metoffice_datahub import async_setup_entry

        hass = _hass()
        entry = _entry()
        session = _session()

        async def run(call_later):
            ok = await async_setup_entry(hass, entry)
            assert ok is True
            _, delay, action = call_later.call_args[0]
            assert delay == 10
            await action(datetime.now(timezone.utc))
            return hass.data[DOMAIN][entry.entry_id]

        with patch("custom_components.metoffice_datahub.dr.async_get") as dev_reg, patch(
            "custom_components.metoffice_datahub.coordinator.async_get_clientsession", return_value=session
        ), patch("custom_components.metoffice_datahub.coordinator.async_call_later") as call_later:
            coord = asyncio.run(run(call_later))

        # Primary device plus two satellite devices
        assert dev_reg.return_value.async_get_or_create.call_count == 3
        assert [c[0][1] for c in call_later.call_args_list] == [10, 600]
        assert coord.store.get("entry1", KEY_CURRENT_TEMPERATURE) == "10.0"
        assert coord.store.get("entry1", KEY_PRESSURE) == "1005"
        assert coord.store.get("entry1_temperature", KEY_CURRENT_TEMPERATURE) == "10.0"
        assert isinstance(coord.store.get("entry1", KEY_LAST_UPDATE), int)
        hass.config_entries.async_forward_entry_setups.assert_awaited_once()

    def test_setup_uses_home_location_by_default(self):
        from custom_components.metoffice_datahub import async_setup_entry

        hass = _hass()
        session = _session()
        with patch("custom_components.metoffice_datahub.dr.async_get"), patch(
            "custom_components.metoffice_datahub.coordinator.async_get_clientsession", return_value=session
        ), patch("custom_components.metoffice_datahub.coordinator.async_call_later"):
            asyncio.run(async_setup_entry(hass, _entry()))
        target = hass.data[DOMAIN]["entry1"].target
        assert (target.latitude, target.longitude) == (51.5, -0.12)

    def test_setup_without_children(self):
        from custom_components.metoffice_datahub import async_setup_entry

        hass = _hass()
        entry = _entry(data={CONF_API_KEY: "k", CONF_CHILDREN: []})
        with patch("custom_components.metoffice_datahub.dr.async_get") as dev_reg, patch(
            "custom_components.metoffice_datahub.coordinator.async_get_clientsession"
        ), patch("custom_components.metoffice_datahub.coordinator.async_call_later"):
            asyncio.run(async_setup_entry(hass, entry))
        assert dev_reg.return_value.async_get_or_create.call_count == 1
        target = hass.data[DOMAIN]["entry1"].target
        assert target.temperature_entity_id is None
        assert target.humidity_entity_id is None

    def test_invalid_config_does_not_start(self):
        from custom_components.metoffice_datahub import async_setup_entry

        hass = _hass()
        entry = _entry(data={CONF_API_KEY: "", CONF_LATITUDE: 10, CONF_LONGITUDE: 10})
        with patch("custom_components.metoffice_datahub.coordinator.async_call_later") as call_later:
            ok = asyncio.run(async_setup_entry(hass, entry))
        assert ok is False
        call_later.assert_not_called()
        assert DOMAIN not in hass.data

    def test_unload_stops_scheduler(self):
        from custom_components.metoffice_datahub import async_unload_entry

        hass = _hass()
        coord = MagicMock()
        coord.async_stop = AsyncMock()
        hass.data = {DOMAIN: {"entry1": coord}}
        hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)

        assert asyncio.run(async_unload_entry(hass, _entry())) is True
        coord.async_stop.assert_awaited_once()
        assert hass.data[DOMAIN] == {}


# ===========================================================================
# Sensor entities
# ===========================================================================


class TestSensorEntities:
    def _coordinator(self, children=("T", "H")):
        from custom_components.metoffice_datahub.config import build_poll_target

        coord = MagicMock()
        coord.store = StateStore()
        coord.target = build_poll_target(
            "entry1", DataHubConfig(api_key="k", latitude=1.0, longitude=2.0, children=frozenset(children))
        )
        return coord

    def test_entities_per_children(self):
        from custom_components.metoffice_datahub.sensor import PRIMARY_SENSORS, async_setup_entry

        for children, extra in (((), 0), (("T",), 1), (("T", "H"), 2)):
            hass = MagicMock()
            hass.data = {DOMAIN: {"entry1": self._coordinator(children)}}
            add = MagicMock()
            asyncio.run(async_setup_entry(hass, _entry(), add))
            entities = add.call_args[0][0]
            assert len(entities) == len(PRIMARY_SENSORS) + extra

    def test_unique_ids_are_unique(self):
        from custom_components.metoffice_datahub.sensor import async_setup_entry

        hass = MagicMock()
        hass.data = {DOMAIN: {"entry1": self._coordinator()}}
        add = MagicMock()
        asyncio.run(async_setup_entry(hass, _entry(), add))
        ids = [e.unique_id for e in add.call_args[0][0]]
        assert len(ids) == len(set(ids))

    def test_native_values_from_store(self):
        from custom_components.metoffice_datahub.sensor import (
            PRIMARY_SENSORS,
            TEMPERATURE_SENSOR,
            DataHubSensor,
        )

        coord = self._coordinator()
        coord.store.set("entry1", KEY_CURRENT_TEMPERATURE, "10.0")
        coord.store.set("entry1", KEY_LAST_UPDATE, 1704070800)
        coord.store.set("entry1_temperature", KEY_CURRENT_TEMPERATURE, "10.0")
        by_slug = {d.slug: DataHubSensor(coord, d, "entry1") for d in PRIMARY_SENSORS}

        assert by_slug["temperature"].native_value == 10.0
        assert by_slug["humidity"].native_value is None
        assert by_slug["last_update"].native_value == datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc)
        assert DataHubSensor(coord, TEMPERATURE_SENSOR, "entry1_temperature").native_value == 10.0

    def test_latest_observation_attributes(self):
        from custom_components.metoffice_datahub.sensor import PRIMARY_SENSORS, DataHubSensor

        coord = self._coordinator()
        coord.store.set("entry1", "latest:time", "2024-01-01T01:00Z")
        coord.store.set("entry1", "latest:uvIndex", 2)
        desc = next(d for d in PRIMARY_SENSORS if d.slug == "latest_observation")
        sensor = DataHubSensor(coord, desc, "entry1")
        assert sensor.native_value == "2024-01-01T01:00Z"
        assert sensor.extra_state_attributes == {"time": "2024-01-01T01:00Z", "uvIndex": 2}

    def test_device_info_points_at_store_entity(self):
        from custom_components.metoffice_datahub.sensor import HUMIDITY_SENSOR, DataHubSensor

        sensor = DataHubSensor(self._coordinator(), HUMIDITY_SENSOR, "entry1_humidity")
        assert sensor.device_info == {"identifiers": {(DOMAIN, "entry1_humidity")}}


# ===========================================================================
# Coordinator updates
# ===========================================================================


def _same_hour_body(screen_temperature, mslp=100500):
    """A model run for the same forecast hour, possibly revised."""
    return json.dumps(
        {
            "features": [
                {
                    "properties": {
                        "location": {"name": "TestTown"},
                        "modelRunDate": "2024-01-01T00:00Z",
                        "timeSeries": [
                            {
                                "time": "2024-01-01T01:00Z",
                                "screenTemperature": screen_temperature,
                                "screenRelativeHumidity": 81.4,
                                "mslp": mslp,
                            }
                        ],
                    }
                }
            ]
        }
    )


class TestCoordinatorUpdates:
    def _run(self, session, cycles):
        from custom_components.metoffice_datahub.coordinator import DataHubCoordinator
        from custom_components.metoffice_datahub.sensor import PRIMARY_SENSORS, DataHubSensor

        cfg = DataHubConfig(api_key="k", latitude=1.0, longitude=2.0, children=frozenset({"T"}))
        seen = []
        with patch(
            "custom_components.metoffice_datahub.coordinator.async_get_clientsession", return_value=session
        ), patch("custom_components.metoffice_datahub.coordinator.async_call_later") as call_later:
            coord = DataHubCoordinator(MagicMock(), _entry(), cfg)
            desc = next(d for d in PRIMARY_SENSORS if d.slug == "latest_observation")
            sensor = DataHubSensor(coord, desc, "entry1")
            coord.async_add_listener(lambda: seen.append(dict(sensor.extra_state_attributes)))

            async def run():
                await coord.async_start()
                for _ in range(cycles):
                    _, _, action = call_later.call_args[0]
                    await action(datetime.now(timezone.utc))

            asyncio.run(run())
        return coord, sensor, seen

    def test_revision_within_same_hour_reaches_entities(self):
        session = _session(bodies=[_same_hour_body(9.9), _same_hour_body(12.4, mslp=99800)])
        coord, sensor, seen = self._run(session, 2)

        assert [s["screenTemperature"] for s in seen] == [9.9, 12.4]
        assert seen[1]["mslp"] == 99800
        assert sensor.native_value == "2024-01-01T01:00Z"
        assert coord.data["entry1"]["latest:screenTemperature"] == 12.4
        assert coord.data["entry1_temperature"] == {KEY_CURRENT_TEMPERATURE: "12.4"}

    def test_failed_cycle_does_not_notify(self):
        session = _session(status=503, body="Service Unavailable")
        coord, _, seen = self._run(session, 2)

        assert seen == []
        assert coord.data is None
        assert coord.recorder.raw == "Service Unavailable"
        assert coord.scheduler.cycles_run == 2

    def test_sensor_is_coordinator_entity(self):
        from homeassistant.helpers.update_coordinator import CoordinatorEntity

        from custom_components.metoffice_datahub.sensor import DataHubSensor

        assert issubclass(DataHubSensor, CoordinatorEntity)


# ===========================================================================
# Diagnostics
# ===========================================================================


class TestDiagnostics:
    def test_redacts_key_and_location(self):
        from custom_components.metoffice_datahub.diagnostics import async_get_config_entry_diagnostics

        hass = MagicMock()
        coord = MagicMock()
        coord.diagnostics.return_value = {"last_response": {"raw": CANNED, "document": None}}
        hass.data = {DOMAIN: {"entry1": coord}}
        entry = _entry(data={CONF_API_KEY: "secret-key", CONF_LATITUDE: 50.0, CONF_LONGITUDE: -3.0})

        result = asyncio.run(async_get_config_entry_diagnostics(hass, entry))

        assert result["version"] == INTEGRATION_VERSION
        assert result["entry_data"] == {CONF_API_KEY: "**REDACTED**"}
        assert "secret-key" not in json.dumps(result)
        assert result["coordinator"]["last_response"]["raw"] == CANNED

    def test_handles_no_coordinator(self):
        from custom_components.metoffice_datahub.diagnostics import async_get_config_entry_diagnostics

        hass = MagicMock()
        hass.data = {DOMAIN: {}}
        result = asyncio.run(async_get_config_entry_diagnostics(hass, _entry()))
        assert result["coordinator"] == {}

    def test_coordinator_diagnostics_shape(self):
        from custom_components.metoffice_datahub.coordinator import DataHubCoordinator

        cfg = DataHubConfig(api_key="k", latitude=1.0, longitude=2.0, children=frozenset({"T"}))
        with patch("custom_components.metoffice_datahub.coordinator.async_get_clientsession"), patch(
            "custom_components.metoffice_datahub.coordinator.async_call_later"
        ):
            coord = DataHubCoordinator(MagicMock(), _entry(), cfg)
        coord.store.set("entry1", KEY_PRESSURE, "1005")

        diag = coord.diagnostics()
        assert diag["target"]["temperature_entity_id"] == "entry1_temperature"
        assert diag["target"]["humidity_entity_id"] is None
        assert diag["scheduler"] == {"armed": False, "cycles_run": 0, "interval_s": 600}
        assert diag["state"] == {"entry1": {KEY_PRESSURE: "1005"}}
        assert diag["last_response"] == {"raw": None, "document": None}


# ===========================================================================
# Packaging metadata
# ===========================================================================


class TestMetadata:
    def test_manifest_version(self):
        with open(os.path.join(COMPONENT, "manifest.json")) as f:
            m = json.load(f)
        assert m["domain"] == DOMAIN
        assert m["version"] == INTEGRATION_VERSION
        assert m["config_flow"] is True

    def test_pyproject_version(self):
        with open(os.path.join(ROOT, "pyproject.toml")) as f:
            content = f.read()
        assert f'version = "{INTEGRATION_VERSION}"' in content

    def test_strings_and_translations_in_sync(self):
        with open(os.path.join(COMPONENT, "strings.json")) as f:
            s = json.load(f)
        with open(os.path.join(COMPONENT, "translations", "en.json")) as f:
            e = json.load(f)
        assert s == e

    def test_user_step_fields_translated(self):
        with open(os.path.join(COMPONENT, "strings.json")) as f:
            strings = json.load(f)
        fields = strings["config"]["step"]["user"]["data"]
        for key in (CONF_API_KEY, CONF_LATITUDE, CONF_LONGITUDE, CONF_CHILDREN):
            assert key in fields
