from collections.abc import Mapping
from typing import Any
import logging

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api import CannotConnect, InvalidAuth, InverterInfo, SmaInverterClient
from .const import (
    CONF_GROUP,
    CONF_HOST,
    CONF_INVERTER_TYPE,
    CONF_MODEL,
    CONF_PASSWORD,
    CONF_POLLING_PERIOD,
    CONF_SERIAL,
    CONF_SSL,
    CONF_VERIFY_SSL,
    DEFAULT_GROUP,
    DEFAULT_PASSWORD,
    DEFAULT_POLLING_PERIOD,
    DOMAIN,
    GROUPS,
    INVERTER_TYPE_SOLAR,
    MAX_POLLING_PERIOD,
    MIN_POLLING_PERIOD,
)
from .coordinator import polling_period
from .discovery import async_discover_inverters
from .strings import INVERTER_TYPE_NAMES

_LOGGER = logging.getLogger(__name__)

MANUAL_ENTRY = "manual"

POLLING_PERIOD_VALIDATOR = vol.All(
    vol.Coerce(int), vol.Range(min=MIN_POLLING_PERIOD, max=MAX_POLLING_PERIOD)
)


async def validate_input(hass: HomeAssistant, data: Mapping[str, Any]) -> InverterInfo:
    """Log on to the inverter and read its identity."""
    session = async_get_clientsession(hass, verify_ssl=data.get(CONF_VERIFY_SSL, True))
    async with SmaInverterClient(
        session,
        data[CONF_HOST],
        data[CONF_PASSWORD],
        data.get(CONF_GROUP, DEFAULT_GROUP),
        data.get(CONF_SSL, False),
    ) as client:
        await client.logon()
        return await client.get_device_info()


def _user_schema(defaults: Mapping[str, Any]) -> vol.Schema:
    return vol.Schema({
        vol.Required(CONF_HOST, default=defaults.get(CONF_HOST, "")): str,
        vol.Required(CONF_PASSWORD, default=defaults.get(CONF_PASSWORD, DEFAULT_PASSWORD)): str,
        vol.Optional(CONF_GROUP, default=defaults.get(CONF_GROUP, DEFAULT_GROUP)): vol.In(GROUPS),
        vol.Optional(CONF_SSL, default=defaults.get(CONF_SSL, False)): bool,
        vol.Optional(CONF_VERIFY_SSL, default=defaults.get(CONF_VERIFY_SSL, True)): bool,
        vol.Optional(
            CONF_POLLING_PERIOD,
            default=defaults.get(CONF_POLLING_PERIOD, DEFAULT_POLLING_PERIOD),
        ): POLLING_PERIOD_VALIDATOR,
    })


class SmaInverterFlowHandler(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    def __init__(self):
        super().__init__()
        self._discovered: dict[str, Any] = {}
        self._found: dict[str, InverterInfo] | None = None

    async def _async_validate(self, user_input: Mapping[str, Any], errors: dict):
        try:
            return await validate_input(self.hass, user_input)
        except CannotConnect:
            errors["base"] = "cannot_connect"
        except InvalidAuth:
            errors["base"] = "invalid_auth"
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Unexpected error validating SMA inverter")
            errors["base"] = "unknown"
        return None

    async def async_step_user(self, user_input: Any = None):
        errors = {}

        if user_input is None and self._found is None:
            found = await async_discover_inverters(self.hass)
            configured = self._async_current_ids()
            self._found = {
                host: info for host, info in found.items() if info.serial not in configured
            }
            if self._found:
                return await self.async_step_pick_device()

        if user_input is not None:
            user_input = dict(user_input)
            user_input[CONF_HOST] = user_input[CONF_HOST].strip()
            if not user_input[CONF_HOST]:
                errors["base"] = "invalid_host"
            else:
                info = await self._async_validate(user_input, errors)
                if info is not None:
                    await self.async_set_unique_id(info.serial)
                    self._abort_if_unique_id_configured(
                        updates={CONF_HOST: user_input[CONF_HOST]}
                    )
                    user_input[CONF_INVERTER_TYPE] = info.inverter_type
                    return self.async_create_entry(title=info.label, data=user_input)

        return self.async_show_form(
            step_id="user",
            data_schema=_user_schema(user_input or {}),
            errors=errors,
        )

    async def async_step_pick_device(self, user_input: Any = None) -> FlowResult:
        """Offer the inverters answering the scan, or manual entry."""
        if user_input is not None:
            host = user_input[CONF_HOST]
            if host == MANUAL_ENTRY:
                return await self.async_step_user()
            info = self._found[host]
            await self.async_set_unique_id(info.serial)
            self._abort_if_unique_id_configured(updates={CONF_HOST: host})
            self._discovered = {
                CONF_HOST: host,
                CONF_SERIAL: info.serial,
                CONF_MODEL: info.model,
                CONF_INVERTER_TYPE: info.inverter_type,
            }
            return self._async_create_discovered_entry()

        choices = {host: f"{info.label} ({host})" for host, info in self._found.items()}
        choices[MANUAL_ENTRY] = "Enter address manually"
        return self.async_show_form(
            step_id="pick_device",
            data_schema=vol.Schema({vol.Required(CONF_HOST): vol.In(choices)}),
        )

    async def async_step_integration_discovery(self, discovery_info: dict) -> FlowResult:
        """Handle an inverter found by the speedwire scan."""
        _LOGGER.debug("Discovered SMA inverter: %s", discovery_info)
        serial = discovery_info[CONF_SERIAL]
        await self.async_set_unique_id(serial)
        self._abort_if_unique_id_configured(updates={CONF_HOST: discovery_info[CONF_HOST]})

        self._discovered = dict(discovery_info)
        self.context["title_placeholders"] = {
            "name": f"{discovery_info[CONF_MODEL]} {serial}",
        }
        return await self.async_step_discovery_confirm()

    @callback
    def _async_create_discovered_entry(self) -> FlowResult:
        discovered = self._discovered
        return self.async_create_entry(
            title=f"{discovered[CONF_MODEL]} {discovered[CONF_SERIAL]}",
            data={
                CONF_HOST: discovered[CONF_HOST],
                CONF_PASSWORD: discovered.get(CONF_PASSWORD, DEFAULT_PASSWORD),
                CONF_GROUP: DEFAULT_GROUP,
                CONF_SSL: False,
                CONF_VERIFY_SSL: True,
                CONF_POLLING_PERIOD: DEFAULT_POLLING_PERIOD,
                CONF_INVERTER_TYPE: discovered.get(CONF_INVERTER_TYPE, INVERTER_TYPE_SOLAR),
            },
        )

    async def async_step_discovery_confirm(self, user_input: Any = None) -> FlowResult:
        discovered = self._discovered
        if user_input is not None:
            return self._async_create_discovered_entry()

        inverter_type = discovered.get(CONF_INVERTER_TYPE, INVERTER_TYPE_SOLAR)
        return self.async_show_form(
            step_id="discovery_confirm",
            description_placeholders={
                "model": discovered[CONF_MODEL],
                "serial": discovered[CONF_SERIAL],
                "host": discovered[CONF_HOST],
                "type": INVERTER_TYPE_NAMES.get(inverter_type, inverter_type),
            },
        )

    async def async_step_reauth(self, entry_data: Mapping[str, Any]) -> FlowResult:
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(self, user_input: Any = None) -> FlowResult:
        errors = {}
        entry = self._get_reauth_entry()

        if user_input is not None:
            data = {**entry.data, CONF_PASSWORD: user_input[CONF_PASSWORD]}
            info = await self._async_validate(data, errors)
            if info is not None:
                await self.async_set_unique_id(info.serial, raise_on_progress=False)
                self._abort_if_unique_id_mismatch()
                return self.async_update_reload_and_abort(entry, data=data)

        return self.async_show_form(
            step_id="reauth_confirm",
            data_schema=vol.Schema({vol.Required(CONF_PASSWORD): str}),
            errors=errors,
            description_placeholders={"host": entry.data[CONF_HOST]},
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return SmaInverterOptionsFlowHandler()


class SmaInverterOptionsFlowHandler(config_entries.OptionsFlow):
    async def async_step_init(self, user_input: Any = None):
        """Manage the options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        data_schema = vol.Schema({
            vol.Required(
                CONF_POLLING_PERIOD, default=polling_period(self.config_entry)
            ): POLLING_PERIOD_VALIDATOR,
        })
        return self.async_show_form(step_id="init", data_schema=data_schema)
