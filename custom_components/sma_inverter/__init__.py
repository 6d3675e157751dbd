import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import config_validation as cv

from .const import CONF_DISCOVERY, DOMAIN, LOGGER, PLATFORMS
from .coordinator import SmaInverterCoordinator
from .discovery import async_start_background_discovery

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(DOMAIN): vol.Schema(
            {vol.Optional(CONF_DISCOVERY, default=True): cv.boolean}
        )
    },
    extra=vol.ALLOW_EXTRA,
)


async def async_setup(hass: HomeAssistant, config: dict):
    hass.data.setdefault(DOMAIN, {})
    if config.get(DOMAIN, {}).get(CONF_DISCOVERY, True):
        hass.data[DOMAIN]["cancel_discovery"] = async_start_background_discovery(hass)
    else:
        LOGGER.debug("SMA Inverter background discovery disabled")
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry):
    hass.data.setdefault(DOMAIN, {})
    LOGGER.debug("Initializing SMA Inverter '%s'", entry.title)

    coordinator = SmaInverterCoordinator(hass, entry)
    await coordinator.async_config_entry_first_refresh()

    hass.data[DOMAIN][entry.entry_id] = {
        "coordinator": coordinator,
    }

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    LOGGER.debug(
        "Polling job scheduled to run every %s for '%s'",
        coordinator.update_interval,
        entry.title,
    )
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    LOGGER.debug("Disposing SMA Inverter '%s'", entry.title)
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id, None)
    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)
