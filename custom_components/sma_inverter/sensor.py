from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.translation import async_get_translations
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .api import build_url
from .const import CHANNEL_TRANSLATION_KEYS, CHANNELS_BY_TYPE, DOMAIN, MANUFACTURER, NUMERIC_FIELDS
from .strings import CHANNEL_NAMES

import logging
_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass, entry, async_add_entities):
    coordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    info = coordinator.inverter_info
    serial = info.serial if info else entry.unique_id

    lang = getattr(hass.config, "language", "en")
    translations = await async_get_translations(hass, lang, "entity", [DOMAIN])

    entities = []
    for channel in CHANNELS_BY_TYPE[coordinator.inverter_type]:
        name_key = f"component.{DOMAIN}.entity.sensor.{CHANNEL_TRANSLATION_KEYS[channel]}.name"
        human_name = translations.get(name_key, CHANNEL_NAMES[channel])
        entities.append(SmaInverterSensor(coordinator, serial, channel, human_name))

    _LOGGER.debug("Adding %d channels for SMA inverter %s", len(entities), serial)
    async_add_entities(entities)


class SmaInverterSensor(CoordinatorEntity, SensorEntity):
    """One channel of an SMA inverter."""

    _attr_has_entity_name = True

    def __init__(self, coordinator, serial, channel, human_name):
        super().__init__(coordinator)
        self._serial = serial
        self._channel = channel
        self._attr_name = human_name
        self._attr_unique_id = f"{serial}_{channel}"

        unit, field_type = NUMERIC_FIELDS[channel]
        self._attr_native_unit_of_measurement = unit
        if field_type == "energy":
            self._attr_state_class = SensorStateClass.TOTAL_INCREASING
            self._attr_device_class = SensorDeviceClass.ENERGY
            self._attr_suggested_display_precision = 1
        elif field_type == "power":
            self._attr_state_class = SensorStateClass.MEASUREMENT
            self._attr_device_class = SensorDeviceClass.POWER
            self._attr_suggested_display_precision = 0
        elif field_type == "battery":
            self._attr_state_class = SensorStateClass.MEASUREMENT
            self._attr_device_class = SensorDeviceClass.BATTERY
            self._attr_suggested_display_precision = 0

    @property
    def native_value(self):
        data = self.coordinator.data
        if not data:
            return None
        return data.get(self._channel)

    @property
    def device_info(self) -> DeviceInfo:
        info = self.coordinator.inverter_info
        return DeviceInfo(
            identifiers={(DOMAIN, self._serial)},
            name=info.name if info else f"{MANUFACTURER} Inverter {self._serial}",
            manufacturer=info.manufacturer if info else MANUFACTURER,
            model=info.model if info else None,
            serial_number=self._serial,
            sw_version=info.sw_version if info else None,
            configuration_url=build_url(self.coordinator.host, self.coordinator.ssl),
        )
