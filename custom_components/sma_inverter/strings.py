# String definitions

# English channel names, used when no translation is loaded
CHANNEL_NAMES = {
    "soc": "State of Charge",
    "powerOutAC_L1": "AC Power Output L1",
    "powerOutAC_L2": "AC Power Output L2",
    "powerOutAC_L3": "AC Power Output L3",
    "powerOutAC_Total": "AC Power Output Total",
    "energyOutCounter": "Energy Output Counter",
}

# Thing type labels
INVERTER_TYPE_NAMES = {
    "solar-inverter": "Solar Inverter",
    "battery-inverter": "Battery Inverter",
}
