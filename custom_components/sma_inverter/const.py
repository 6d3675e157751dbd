DOMAIN = "sma_inverter"
PLATFORMS = ["sensor"]
MANUFACTURER = "SMA"

CONF_HOST = "ip"
CONF_PASSWORD = "password"
CONF_GROUP = "group"
CONF_SSL = "ssl"
CONF_VERIFY_SSL = "verify_ssl"
CONF_POLLING_PERIOD = "polling_period"
CONF_INVERTER_TYPE = "inverter_type"
CONF_SERIAL = "serial"
CONF_MODEL = "model"
CONF_DISCOVERY = "discovery"

DEFAULT_PASSWORD = "0000"
DEFAULT_GROUP = "user"
DEFAULT_POLLING_PERIOD = 60
MIN_POLLING_PERIOD = 10
MAX_POLLING_PERIOD = 3600
GROUPS = ["user", "installer"]

REQUEST_TIMEOUT = 15

import logging
LOGGER = logging.getLogger(__package__)

# Thing types
INVERTER_TYPE_SOLAR = "solar-inverter"
INVERTER_TYPE_BATTERY = "battery-inverter"

# Model name prefixes reported by battery inverters (Sunny Island, Sunny Boy Storage)
BATTERY_MODEL_PREFIXES = ("Sunny Island", "SI", "Sunny Boy Storage", "SBS")

# Channel ids
CHANNEL_STATE_OF_CHARGE = "soc"
CHANNEL_POWER_OUT_AC_L1 = "powerOutAC_L1"
CHANNEL_POWER_OUT_AC_L2 = "powerOutAC_L2"
CHANNEL_POWER_OUT_AC_L3 = "powerOutAC_L3"
CHANNEL_POWER_OUT_AC_TOTAL = "powerOutAC_Total"
CHANNEL_ENERGY_OUT_COUNTER = "energyOutCounter"

PHASE_CHANNELS = [
    CHANNEL_POWER_OUT_AC_L1,
    CHANNEL_POWER_OUT_AC_L2,
    CHANNEL_POWER_OUT_AC_L3,
]

CHANNELS_BY_TYPE = {
    INVERTER_TYPE_SOLAR: PHASE_CHANNELS + [
        CHANNEL_POWER_OUT_AC_TOTAL,
        CHANNEL_ENERGY_OUT_COUNTER,
    ],
    INVERTER_TYPE_BATTERY: [CHANNEL_STATE_OF_CHARGE],
}

# pysma sensor names feeding each channel, first one with a value wins
CHANNEL_SOURCES = {
    CHANNEL_STATE_OF_CHARGE: ("battery_soc_total", "battery_soc_a"),
    CHANNEL_POWER_OUT_AC_L1: ("power_l1",),
    CHANNEL_POWER_OUT_AC_L2: ("power_l2",),
    CHANNEL_POWER_OUT_AC_L3: ("power_l3",),
    CHANNEL_ENERGY_OUT_COUNTER: ("total_yield",),
}

# Channels with units
NUMERIC_FIELDS = {
    CHANNEL_STATE_OF_CHARGE: ("%", "battery"),
    CHANNEL_POWER_OUT_AC_L1: ("W", "power"),
    CHANNEL_POWER_OUT_AC_L2: ("W", "power"),
    CHANNEL_POWER_OUT_AC_L3: ("W", "power"),
    CHANNEL_POWER_OUT_AC_TOTAL: ("W", "power"),
    CHANNEL_ENERGY_OUT_COUNTER: ("kWh", "energy"),
}

# Speedwire discovery
DISCOVERY_ADDRESS = "239.12.255.254"
DISCOVERY_PORT = 9522
DISCOVERY_MESSAGE = bytes.fromhex("534d4100000402a0ffffffff0000002000000000")
DISCOVERY_SIGNATURE = b"SMA\x00"
DISCOVERY_TIMEOUT = 5
DISCOVERY_INTERVAL = 15 * 60

# Channel id -> translation key under entity.sensor
CHANNEL_TRANSLATION_KEYS = {
    "soc": "soc",
    "powerOutAC_L1": "power_out_ac_l1",
    "powerOutAC_L2": "power_out_ac_l2",
    "powerOutAC_L3": "power_out_ac_l3",
    "powerOutAC_Total": "power_out_ac_total",
    "energyOutCounter": "energy_out_counter",
}
