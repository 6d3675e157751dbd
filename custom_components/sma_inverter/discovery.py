"""Speedwire discovery of SMA inverters on the local network.

The scan multicasts the speedwire discovery frame and collects the source
address of every SMA device that answers. Each responder is then logged on to
with the default user password to learn its serial number and model, and a
config flow is started for it. Devices that reject the logon (energy meters,
inverters with a changed password) are skipped.
"""
from __future__ import annotations

import asyncio
import logging
import socket
from datetime import timedelta

from homeassistant.config_entries import SOURCE_INTEGRATION_DISCOVERY
from homeassistant.const import EVENT_HOMEASSISTANT_STOP
from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers import discovery_flow
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_track_time_interval

from .api import CannotConnect, InvalidAuth, InverterInfo, SmaInverterClient
from .const import (
    CONF_HOST,
    CONF_INVERTER_TYPE,
    CONF_MODEL,
    CONF_PASSWORD,
    CONF_SERIAL,
    DEFAULT_PASSWORD,
    DISCOVERY_ADDRESS,
    DISCOVERY_INTERVAL,
    DISCOVERY_MESSAGE,
    DISCOVERY_PORT,
    DISCOVERY_SIGNATURE,
    DISCOVERY_TIMEOUT,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)


class SpeedwireDiscoveryProtocol(asyncio.DatagramProtocol):
    """Collects the addresses of devices answering the discovery frame."""

    def __init__(self):
        self.hosts: set[str] = set()
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport
        transport.sendto(DISCOVERY_MESSAGE, (DISCOVERY_ADDRESS, DISCOVERY_PORT))

    def datagram_received(self, data: bytes, addr):
        # Our own request comes back through multicast loopback
        if data == DISCOVERY_MESSAGE or not data.startswith(DISCOVERY_SIGNATURE):
            return
        host = addr[0]
        if host not in self.hosts:
            _LOGGER.debug("Speedwire reply from %s", host)
        self.hosts.add(host)

    def error_received(self, exc):
        _LOGGER.debug("Speedwire discovery socket error: %s", exc)


def _create_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
    sock.bind(("", 0))
    sock.setblocking(False)
    return sock


async def async_scan_speedwire(hass: HomeAssistant, timeout: float = DISCOVERY_TIMEOUT) -> list[str]:
    """Return the addresses of all SMA devices answering within timeout."""
    try:
        transport, protocol = await hass.loop.create_datagram_endpoint(
            SpeedwireDiscoveryProtocol, sock=_create_socket()
        )
    except OSError as err:
        _LOGGER.warning("Unable to start SMA speedwire discovery: %s", err)
        return []

    try:
        await asyncio.sleep(timeout)
    finally:
        transport.close()
    return sorted(protocol.hosts)


async def _async_identify(hass: HomeAssistant, host: str) -> InverterInfo | None:
    session = async_get_clientsession(hass)
    try:
        async with SmaInverterClient(session, host, DEFAULT_PASSWORD) as client:
            await client.logon()
            return await client.get_device_info()
    except InvalidAuth as err:
        _LOGGER.debug("Logon to %s with the default password failed: %s", host, err)
    except CannotConnect as err:
        _LOGGER.debug("SMA device at %s did not answer: %s", host, err)
    return None


async def async_discover_inverters(hass: HomeAssistant) -> dict[str, InverterInfo]:
    """Scan the network and identify every inverter found, keyed by host."""
    _LOGGER.debug("Try to discover all SMA Inverter devices")
    hosts = await async_scan_speedwire(hass)
    if not hosts:
        _LOGGER.debug("No SMA Inverter found.")
        return {}

    found = {}
    for host in hosts:
        info = await _async_identify(hass, host)
        if info is not None:
            _LOGGER.debug("Thing discovered '%s' at %s", info.label, host)
            found[host] = info
    return found


@callback
def async_trigger_discovery(hass: HomeAssistant, found: dict[str, InverterInfo]) -> None:
    for host, info in found.items():
        discovery_flow.async_create_flow(
            hass,
            DOMAIN,
            context={"source": SOURCE_INTEGRATION_DISCOVERY},
            data={
                CONF_HOST: host,
                CONF_SERIAL: info.serial,
                CONF_MODEL: info.model,
                CONF_INVERTER_TYPE: info.inverter_type,
                CONF_PASSWORD: DEFAULT_PASSWORD,
            },
        )


@callback
def async_start_background_discovery(hass: HomeAssistant) -> CALLBACK_TYPE:
    """Scan now and every DISCOVERY_INTERVAL; returns the cancel callback."""
    _LOGGER.debug("Start SMA Inverter background discovery")
    running = asyncio.Lock()

    async def _async_discover(*_) -> None:
        if running.locked():
            _LOGGER.debug("SMA Inverter scan already running")
            return
        async with running:
            found = await async_discover_inverters(hass)
        async_trigger_discovery(hass, found)

    hass.async_create_background_task(_async_discover(), f"{DOMAIN} discovery")
    listeners = {
        "interval": async_track_time_interval(
            hass, _async_discover, timedelta(seconds=DISCOVERY_INTERVAL)
        ),
    }

    @callback
    def _async_cancel() -> None:
        for key in ("interval", "stop"):
            unsub = listeners.pop(key, None)
            if unsub is not None:
                unsub()

    @callback
    def _async_stop(_event) -> None:
        # A fired listen_once listener is already removed
        listeners.pop("stop", None)
        _async_cancel()

    listeners["stop"] = hass.bus.async_listen_once(EVENT_HOMEASSISTANT_STOP, _async_stop)
    return _async_cancel
