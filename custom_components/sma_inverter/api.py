"""Thin wrapper around pysma for a single SMA inverter."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import aiohttp
import async_timeout
import pysma
from pysma.exceptions import (
    SmaAuthenticationException,
    SmaConnectionException,
    SmaReadException,
)

from .const import (
    BATTERY_MODEL_PREFIXES,
    CHANNEL_POWER_OUT_AC_TOTAL,
    CHANNEL_SOURCES,
    CHANNELS_BY_TYPE,
    DEFAULT_GROUP,
    INVERTER_TYPE_BATTERY,
    INVERTER_TYPE_SOLAR,
    MANUFACTURER,
    PHASE_CHANNELS,
    REQUEST_TIMEOUT,
)

_LOGGER = logging.getLogger(__name__)


class SmaInverterError(Exception):
    """Base error for inverter communication."""


class CannotConnect(SmaInverterError):
    """The inverter could not be reached or did not answer."""


class InvalidAuth(SmaInverterError):
    """The inverter rejected the password."""


@dataclass
class InverterInfo:
    serial: str
    model: str
    name: str
    manufacturer: str = MANUFACTURER
    sw_version: str | None = None
    inverter_type: str = INVERTER_TYPE_SOLAR

    @property
    def label(self) -> str:
        return f"{self.model} {self.serial}"


def classify_inverter(model: str | None) -> str:
    """Return the thing type for a model name."""
    if model and model.startswith(BATTERY_MODEL_PREFIXES):
        return INVERTER_TYPE_BATTERY
    return INVERTER_TYPE_SOLAR


def sum_phases(*values: float | None) -> float:
    total = 0.0
    for value in values:
        if value is not None:
            total += float(value)
    return total


def build_url(host: str, ssl: bool = False) -> str:
    protocol = "https" if ssl else "http"
    return f"{protocol}://{host}"


class SmaInverterClient:
    """One logged-on session against an inverter.

    Use as an async context manager. The session on the device is closed on
    exit.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        host: str,
        password: str,
        group: str = DEFAULT_GROUP,
        ssl: bool = False,
    ):
        self.host = host
        self._sma = pysma.SMA(session, build_url(host, ssl), password, group)
        self._logged_on = False

    async def __aenter__(self) -> SmaInverterClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _call(self, coro):
        try:
            async with async_timeout.timeout(REQUEST_TIMEOUT):
                return await coro
        except SmaAuthenticationException as err:
            raise InvalidAuth(str(err) or "Authentication failed") from err
        except (SmaConnectionException, SmaReadException) as err:
            raise CannotConnect(str(err) or "Inverter did not answer") from err
        except asyncio.TimeoutError as err:
            raise CannotConnect(f"Timeout talking to {self.host}") from err
        except aiohttp.ClientError as err:
            raise CannotConnect(str(err)) from err

    async def logon(self) -> None:
        ok = await self._call(self._sma.new_session())
        if ok is False:
            raise InvalidAuth(f"Logon to {self.host} refused")
        self._logged_on = True
        _LOGGER.debug("Logged on to SMA inverter at %s", self.host)

    async def close(self) -> None:
        if not self._logged_on:
            return
        self._logged_on = False
        try:
            await self._sma.close_session()
        except (SmaConnectionException, SmaReadException, aiohttp.ClientError, asyncio.TimeoutError) as err:
            _LOGGER.debug("Closing session on %s failed: %s", self.host, err)

    async def get_device_info(self) -> InverterInfo:
        info = await self._call(self._sma.device_info())
        model = str(info.get("type") or "Unknown")
        serial = str(info.get("serial") or "")
        if not serial:
            raise CannotConnect(f"Inverter at {self.host} reported no serial number")
        return InverterInfo(
            serial=serial,
            model=model,
            name=str(info.get("name") or f"{MANUFACTURER} {model}"),
            manufacturer=str(info.get("manufacturer") or MANUFACTURER),
            sw_version=info.get("sw_version"),
            inverter_type=classify_inverter(model),
        )

    async def _read_sensor_values(self, names: set[str]) -> dict:
        sensors = await self._call(self._sma.get_sensors())
        # pysma ships per-phase and per-battery sensors disabled, read() skips those
        for sensor in sensors:
            if sensor.name in names:
                sensor.enabled = True
        if not await self._call(self._sma.read(sensors)):
            raise CannotConnect(f"Reading values from {self.host} failed")
        return {sensor.name: sensor.value for sensor in sensors}

    async def read_channels(self, inverter_type: str) -> dict[str, float | None]:
        sourced = [ch for ch in CHANNELS_BY_TYPE[inverter_type] if ch in CHANNEL_SOURCES]
        values = await self._read_sensor_values(
            {name for ch in sourced for name in CHANNEL_SOURCES[ch]}
        )
        channels = {ch: _first_value(values, CHANNEL_SOURCES[ch]) for ch in sourced}

        if inverter_type == INVERTER_TYPE_SOLAR:
            channels[CHANNEL_POWER_OUT_AC_TOTAL] = sum_phases(
                *(channels[ch] for ch in PHASE_CHANNELS)
            )
        return channels


def _first_value(values: dict, names) -> float | None:
    for name in names:
        value = values.get(name)
        if value is not None:
            return float(value)
    return None
