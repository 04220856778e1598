"""HTTP access to the DataHub site-specific API."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .const import DATAHUB_HEADER_API_KEY, DATAHUB_URL

_LOGGER = logging.getLogger(__name__)


class DataHubTransportError(Exception):
    """Non-200 response or connection failure."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


def build_params(latitude: float, longitude: float) -> dict[str, str]:
    return {
        "excludeParameterMetadata": "true",
        "includeLocationName": "true",
        "latitude": str(latitude),
        "longitude": str(longitude),
    }


class DataHubClient:
    """One GET per call against ``/point/hourly``; no retries."""

    def __init__(self, session: aiohttp.ClientSession, api_key: str, url: str = DATAHUB_URL) -> None:
        self._session = session
        self._api_key = api_key
        self._url = url

    async def async_fetch(self, latitude: float, longitude: float) -> str:
        """Return the raw response body.

        Raises DataHubTransportError on a non-200 status or a connection error.
        """
        params = build_params(latitude, longitude)
        headers = {DATAHUB_HEADER_API_KEY: self._api_key}
        _LOGGER.debug("Requesting DataHub forecast for %s,%s", latitude, longitude)
        try:
            async with self._session.get(self._url, params=params, headers=headers) as resp:
                body = await resp.text()
                if resp.status != 200:
                    raise DataHubTransportError(f"HTTP {resp.status}", status=resp.status, body=body)
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise DataHubTransportError(f"{type(err).__name__}: {err}") from err
