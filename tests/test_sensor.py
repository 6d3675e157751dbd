"""Tests for the channel sensors."""

from homeassistant.const import STATE_UNAVAILABLE, STATE_UNKNOWN
from homeassistant.core import HomeAssistant
from homeassistant.helpers import device_registry as dr
from homeassistant.helpers import entity_registry as er
from homeassistant.setup import async_setup_component
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.sma_inverter.api import CannotConnect
from custom_components.sma_inverter.const import DOMAIN

from .conftest import BATTERY_SERIAL, SOLAR_SERIAL


def _entity_id(hass: HomeAssistant, serial: str, channel: str) -> str | None:
    return er.async_get(hass).async_get_entity_id("sensor", DOMAIN, f"{serial}_{channel}")


async def _setup(hass: HomeAssistant, entry: MockConfigEntry) -> None:
    entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done()


async def test_solar_channels(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_client,
):
    await _setup(hass, mock_config_entry)

    l1 = hass.states.get(_entity_id(hass, SOLAR_SERIAL, "powerOutAC_L1"))
    assert float(l1.state) == 1000.0
    assert l1.attributes["unit_of_measurement"] == "W"
    assert l1.attributes["device_class"] == "power"
    assert l1.attributes["state_class"] == "measurement"

    total = hass.states.get(_entity_id(hass, SOLAR_SERIAL, "powerOutAC_Total"))
    assert float(total.state) == 2100.0

    energy = hass.states.get(_entity_id(hass, SOLAR_SERIAL, "energyOutCounter"))
    assert float(energy.state) == 12345.6
    assert energy.attributes["unit_of_measurement"] == "kWh"
    assert energy.attributes["state_class"] == "total_increasing"

    assert _entity_id(hass, SOLAR_SERIAL, "soc") is None


async def test_missing_value_is_unknown(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_client,
):
    await _setup(hass, mock_config_entry)

    l3 = hass.states.get(_entity_id(hass, SOLAR_SERIAL, "powerOutAC_L3"))
    assert l3.state == STATE_UNKNOWN


async def test_battery_channels(
    hass: HomeAssistant,
    mock_battery_entry: MockConfigEntry,
    mock_battery_client,
):
    await _setup(hass, mock_battery_entry)

    soc = hass.states.get(_entity_id(hass, BATTERY_SERIAL, "soc"))
    assert float(soc.state) == 87.0
    assert soc.attributes["unit_of_measurement"] == "%"
    assert soc.attributes["device_class"] == "battery"

    assert _entity_id(hass, BATTERY_SERIAL, "powerOutAC_L1") is None
    assert len(er.async_entries_for_config_entry(er.async_get(hass), mock_battery_entry.entry_id)) == 1


async def test_device_registry(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_client,
):
    await _setup(hass, mock_config_entry)

    device = dr.async_get(hass).async_get_device(identifiers={(DOMAIN, SOLAR_SERIAL)})
    assert device is not None
    assert device.manufacturer == "SMA"
    assert device.model == "STP 10.0-3AV-40"
    assert device.serial_number == SOLAR_SERIAL
    assert device.sw_version == "3.10.10.R"
    assert device.configuration_url == "http://192.168.1.10"


async def test_unavailable_until_next_good_poll(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_client,
):
    await _setup(hass, mock_config_entry)
    coordinator = hass.data[DOMAIN][mock_config_entry.entry_id]["coordinator"]
    entity_id = _entity_id(hass, SOLAR_SERIAL, "powerOutAC_L1")

    mock_client.read_channels.side_effect = CannotConnect("timeout")
    await coordinator.async_refresh()
    await hass.async_block_till_done()
    assert hass.states.get(entity_id).state == STATE_UNAVAILABLE

    mock_client.read_channels.side_effect = None
    mock_client.read_channels.return_value = {
        "powerOutAC_L1": 10.0,
        "powerOutAC_L2": 20.0,
        "powerOutAC_L3": 30.0,
        "powerOutAC_Total": 60.0,
        "energyOutCounter": 12346.0,
    }
    await coordinator.async_refresh()
    await hass.async_block_till_done()
    assert float(hass.states.get(entity_id).state) == 10.0


async def test_update_entity_polls_inverter(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_client,
):
    await _setup(hass, mock_config_entry)
    assert await async_setup_component(hass, "homeassistant", {})
    assert mock_client.read_channels.await_count == 1

    await hass.services.async_call(
        "homeassistant",
        "update_entity",
        {"entity_id": _entity_id(hass, SOLAR_SERIAL, "powerOutAC_Total")},
        blocking=True,
    )
    await hass.async_block_till_done()

    assert mock_client.read_channels.await_count == 2
