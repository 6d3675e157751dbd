import asyncio
import logging
from datetime import timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import CannotConnect, InvalidAuth, InverterInfo, SmaInverterClient
from .const import (
    CONF_GROUP,
    CONF_HOST,
    CONF_INVERTER_TYPE,
    CONF_PASSWORD,
    CONF_POLLING_PERIOD,
    CONF_SSL,
    CONF_VERIFY_SSL,
    DEFAULT_GROUP,
    DEFAULT_PASSWORD,
    DEFAULT_POLLING_PERIOD,
    INVERTER_TYPE_SOLAR,
)

_LOGGER = logging.getLogger(__name__)


def polling_period(entry: ConfigEntry) -> int:
    """Options win over the value stored at setup time."""
    period = entry.options.get(CONF_POLLING_PERIOD, entry.data.get(CONF_POLLING_PERIOD))
    return int(period) if period else DEFAULT_POLLING_PERIOD


class SmaInverterCoordinator(DataUpdateCoordinator):
    def __init__(self, hass: HomeAssistant, entry: ConfigEntry):
        super().__init__(
            hass,
            _LOGGER,
            config_entry=entry,
            name=f"SMA Inverter {entry.data[CONF_HOST]}",
            update_interval=timedelta(seconds=polling_period(entry)),
        )
        self.host = entry.data[CONF_HOST]
        self.password = entry.data.get(CONF_PASSWORD, DEFAULT_PASSWORD)
        self.group = entry.data.get(CONF_GROUP, DEFAULT_GROUP)
        self.ssl = entry.data.get(CONF_SSL, False)
        self.verify_ssl = entry.data.get(CONF_VERIFY_SSL, True)
        self.inverter_type = entry.data.get(CONF_INVERTER_TYPE, INVERTER_TYPE_SOLAR)
        self.inverter_info: InverterInfo | None = None
        self._lock = asyncio.Lock()

    def _client(self) -> SmaInverterClient:
        session = async_get_clientsession(self.hass, verify_ssl=self.verify_ssl)
        return SmaInverterClient(session, self.host, self.password, self.group, self.ssl)

    async def _async_update_data(self):
        _LOGGER.debug("Update SMA inverter data '%s'", self.host)
        async with self._lock:
            try:
                async with self._client() as client:
                    await client.logon()
                    if self.inverter_info is None:
                        self.inverter_info = await client.get_device_info()
                        _LOGGER.debug(
                            "Found a SMA Inverter with S/N '%s' (%s)",
                            self.inverter_info.serial,
                            self.inverter_info.model,
                        )
                    data = await client.read_channels(self.inverter_type)
            except InvalidAuth as err:
                if self.inverter_info is None:
                    _LOGGER.error("SMA inverter at %s rejected the password: %s", self.host, err)
                    raise ConfigEntryAuthFailed(str(err)) from err
                # Also raised when the inverter has no free session left
                raise UpdateFailed(f"Logon to {self.host} failed: {err}") from err
            except CannotConnect as err:
                raise UpdateFailed(f"Error communicating with {self.host}: {err}") from err

        return data
