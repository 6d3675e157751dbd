"""Shared fixtures for SMA Inverter integration tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.sma_inverter.api import InverterInfo
from custom_components.sma_inverter.const import (
    CONF_GROUP,
    CONF_HOST,
    CONF_INVERTER_TYPE,
    CONF_PASSWORD,
    CONF_POLLING_PERIOD,
    CONF_SSL,
    CONF_VERIFY_SSL,
    DOMAIN,
    INVERTER_TYPE_BATTERY,
    INVERTER_TYPE_SOLAR,
)

SOLAR_SERIAL = "3001234567"
BATTERY_SERIAL = "3009876543"

SOLAR_INFO = InverterInfo(
    serial=SOLAR_SERIAL,
    model="STP 10.0-3AV-40",
    name="Sunny Tripower",
    sw_version="3.10.10.R",
    inverter_type=INVERTER_TYPE_SOLAR,
)
BATTERY_INFO = InverterInfo(
    serial=BATTERY_SERIAL,
    model="SBS3.7-10",
    name="Sunny Boy Storage",
    inverter_type=INVERTER_TYPE_BATTERY,
)

SOLAR_CHANNELS = {
    "powerOutAC_L1": 1000.0,
    "powerOutAC_L2": 1100.0,
    "powerOutAC_L3": None,
    "powerOutAC_Total": 2100.0,
    "energyOutCounter": 12345.6,
}
BATTERY_CHANNELS = {"soc": 87.0}


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable custom integrations for all tests."""
    yield


@pytest.fixture(autouse=True)
def mock_speedwire_scan():
    """Keep background discovery off the network."""
    with patch(
        "custom_components.sma_inverter.discovery.async_scan_speedwire",
        new_callable=AsyncMock,
        return_value=[],
    ) as mock_scan:
        yield mock_scan


def make_client(info=SOLAR_INFO, channels=SOLAR_CHANNELS) -> MagicMock:
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.logon = AsyncMock(return_value=None)
    client.get_device_info = AsyncMock(return_value=info)
    client.read_channels = AsyncMock(return_value=dict(channels))
    return client


@pytest.fixture
def mock_client():
    """Patch the inverter client everywhere the integration creates one."""
    client = make_client()
    with (
        patch(
            "custom_components.sma_inverter.coordinator.SmaInverterClient",
            return_value=client,
        ),
        patch(
            "custom_components.sma_inverter.config_flow.SmaInverterClient",
            return_value=client,
        ),
    ):
        yield client


@pytest.fixture
def mock_battery_client():
    client = make_client(BATTERY_INFO, BATTERY_CHANNELS)
    with patch(
        "custom_components.sma_inverter.coordinator.SmaInverterClient",
        return_value=client,
    ):
        yield client


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    return MockConfigEntry(
        domain=DOMAIN,
        title=f"STP 10.0-3AV-40 {SOLAR_SERIAL}",
        unique_id=SOLAR_SERIAL,
        data={
            CONF_HOST: "192.168.1.10",
            CONF_PASSWORD: "0000",
            CONF_GROUP: "user",
            CONF_SSL: False,
            CONF_VERIFY_SSL: True,
            CONF_POLLING_PERIOD: 60,
            CONF_INVERTER_TYPE: INVERTER_TYPE_SOLAR,
        },
    )


@pytest.fixture
def mock_battery_entry() -> MockConfigEntry:
    return MockConfigEntry(
        domain=DOMAIN,
        title=f"SBS3.7-10 {BATTERY_SERIAL}",
        unique_id=BATTERY_SERIAL,
        data={
            CONF_HOST: "192.168.1.20",
            CONF_PASSWORD: "0000",
            CONF_INVERTER_TYPE: INVERTER_TYPE_BATTERY,
        },
    )
