"""Almond device type codes mapped to Web Thing capability schemas.

DeviceList documentation: https://wiki.securifi.com/index.php?title=Devicelist_Documentation
Web Thing schema: https://iot.mozilla.org/schemas/

``DEVICE_MAP`` is built once at import time and is read-only. Keys are the
hub's ``Type`` codes; property keys are the hub's ``DeviceValues`` indexes.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from .models import CapabilityRecord

# ---------------------------------------------------------------------------
# Shared property definitions
# ---------------------------------------------------------------------------

_BOOLEAN = {
    "@type": "BooleanProperty",
    "name": "value",
    "title": "Value",
    "description": "Boolean value of true or false",
    "type": "boolean",
}
_ON_OFF = {
    "@type": "OnOffProperty",
    "name": "on",
    "title": "On/Off",
    "description": "Whether the switch is on or off",
    "type": "boolean",
}
_BATTERY_LEVEL = {
    "@type": "LevelProperty",
    "name": "battery",
    "title": "Battery Level",
    "description": "Level of the battery charge",
    "type": "integer",
    "minimum": 0,
    "maximum": 100,
    "unit": "percent",
    "readOnly": True,
}
_TEMPERATURE = {
    "@type": "TemperatureProperty",
    "name": "temperature",
    "title": "Temperature",
    "description": "The measured ambient temperature in fahrenheit",
    "type": "number",
    "unit": "degree fahrenheit",
    "readOnly": True,
}
_HUMIDITY = {
    "@type": "MultilevelSensor",
    "name": "humidity",
    "title": "Humidity",
    "description": "The measured ambient humidity",
    "type": "number",
    "minimum": 0,
    "maximum": 100,
    "unit": "percent",
    "readOnly": True,
}
_UNITS = {
    "name": "units",
    "title": "Units",
    "description": "Temperature units",
    "type": "string",
    "enum": ["C", "F"],
}
_AWAY_MODE = {
    "@type": "EnumProperty",
    "name": "away-mode",
    "title": "Away Mode",
    "description": "Away mode",
    "type": "string",
    "enum": ["home", "away", "auto-away", "unknown"],
}
_NEST_ID = {
    "name": "nest-id",
    "title": "Nest ID",
    "description": "ID of the Nest device",
    "type": "string",
    "readOnly": True,
}
_RESPONSE_CODE = {
    "name": "response-code",
    "title": "Response Code",
    "description": "HTTP response code (should be 200)",
    "type": "integer",
    "readOnly": True,
}


def _read_only_flag(name: str, title: str, description: str) -> dict[str, Any]:
    return {
        "@type": "BooleanProperty",
        "name": name,
        "title": title,
        "description": description,
        "type": "boolean",
        "readOnly": True,
    }


def _fahrenheit(name: str, title: str, description: str, low: int, high: int) -> dict[str, Any]:
    return {
        "@type": "TemperatureProperty",
        "name": name,
        "title": title,
        "description": description,
        "type": "number",
        "minimum": low,
        "maximum": high,
        "unit": "degree fahrenheit",
    }


def _level(name: str, title: str, description: str, high: int) -> dict[str, Any]:
    return {
        "@type": "LevelProperty",
        "name": name,
        "title": title,
        "description": description,
        "type": "integer",
        "minimum": 0,
        "maximum": high,
    }


# ---------------------------------------------------------------------------
# Device types
# ---------------------------------------------------------------------------

_RAW_MAP: dict[str, dict[str, Any]] = {
    "1": {
        "@type": ["OnOffSwitch"],
        "description": "An on/off switch",
        "properties": {"1": _ON_OFF},
    },
    "2": {
        "@type": ["MultiLevelSwitch"],
        "description": "A multilevel switch",
        "properties": {
            "1": _level("level", "Level", "Level of the switch from 0-100", 100),
        },
    },
    "3": {
        "@type": ["BinarySensor"],
        "description": "A binary sensor",
        "properties": {"1": _BOOLEAN},
    },
    "4": {
        "@type": ["MultiLevelSwitch", "OnOffSwitch"],
        "description": "A multilevel switch with on/off capabilities",
        "properties": {
            "1": _level("level", "Level", "Level of the switch from 0-255", 255),
            "2": _ON_OFF,
        },
    },
    "5": {
        "@type": ["Lock", "MultilevelSensor"],
        "description": "A door lock",
        "properties": {
            "1": {
                "@type": "EnumProperty",
                "name": "locked",
                "title": "Lock State",
                "description": "State of the lock",
                "type": "integer",
                # 255 locked, 0 unlocked; the hub does not document the rest
                "enum": [255, 0, 17, 23, 26],
                "minimum": 0,
                "maximum": 255,
            },
            "2": {
                "@type": "Property",
                "name": "config",
                "title": "Config",
                "description": "Door lock configuration",
                "type": "string",
                "visible": False,
            },
            "3": _BATTERY_LEVEL,
            "4": _level("max-users", "Maximum users", "Maximum users", 20),
        },
    },
    "6": {
        "@type": ["Alarm", "MultilevelSensor"],
        "description": "An alarm",
        "properties": {
            "1": _level("basic", "Basic", "Alarm level", 255),
            "2": _BATTERY_LEVEL,
        },
    },
    "7": {
        "@type": ["Thermostat", "TemperatureSensor"],
        "description": "A thermostat",
        "properties": {
            "1": _TEMPERATURE,
            "2": {
                "@type": "EnumProperty",
                "name": "mode",
                "title": "Mode",
                "description": "Set operation mode of the thermostat",
                "type": "string",
                "enum": [],
            },
            "3": {
                "name": "operating-state",
                "title": "Operating State",
                "description": "Operation state of the thermostat",
                "type": "string",
                "readOnly": True,
            },
            "4": _fahrenheit(
                "target-heat", "Target Heating Temp",
                "Target heating temperature in fahrenheit", 35, 95,
            ),
            "5": _fahrenheit(
                "target-cool", "Target Cooling Temp",
                "Target cooling temperature in fahrenheit", 35, 95,
            ),
            "6": {
                "@type": "EnumProperty",
                "name": "fan-mode",
                "title": "Fan Mode",
                "description": "Current mode of the fan",
                "type": "string",
                "enum": ["On low", "Auto low"],
            },
            "7": {
                "name": "fan-state",
                "title": "Fan State",
                "description": "Current state of the fan",
                "type": "string",
                "readOnly": True,
            },
            "8": _BATTERY_LEVEL,
            "9": _UNITS,
            "10": _HUMIDITY,
        },
    },
    "9": {
        "@type": ["SceneController"],
        "description": "Scene actuator config",
        "properties": {
            "1": {
                "name": "config",
                "title": "Scene Actuator Config",
                "type": "integer",
            },
        },
    },
    "48": {
        "@type": ["Light"],
        "description": "A Hue lamp",
        "properties": {
            "1": {
                "name": "hue-bridge-id",
                "title": "Hue Bridge ID",
                "description": "ID of the Hue Bridge this lamp is paired with",
                "type": "string",
                "readOnly": True,
            },
            "2": _ON_OFF,
            "3": {
                "@type": ["ColorTemperatureProperty"],
                "name": "hue",
                "title": "Hue",
                "description": "Hue of the Hue lamp in Kelvin",
                "type": "integer",
                "minimum": 0,
                "maximum": 65535,
                "unit": "kelvin",
            },
            "4": _level("saturation", "Saturation", "Saturation of the Hue lamp from 0-255", 255),
            "5": {
                **_level("brightness", "Brightness", "Brightness of the Hue lamp from 0-255", 255),
                "@type": "BrightnessProperty",
            },
            "6": {
                "name": "effect",
                "title": "Effect",
                "description": "Applied effect",
                "type": "string",
            },
            "7": {
                "name": "color-mode",
                "title": "Color Mode",
                "description": "Applied color mode",
                "type": "string",
            },
            "8": {
                "name": "hue-bulb-id",
                "title": "Hue Bulb ID",
                "description": "ID of this Hue lamp",
                "type": "integer",
                "readOnly": True,
            },
            "9": {
                "name": "user-name",
                "title": "User Name",
                "description": "Philips Hue user",
                "type": "string",
                "readOnly": True,
            },
            "10": {
                "@type": "BooleanProperty",
                "name": "reachable",
                "title": "Reachable",
                "description": "Whether the Hue lamp is currently reachable",
                "type": "boolean",
            },
        },
    },
    "57": {
        "@type": ["NestThermostat", "Thermostat", "TemperatureSensor"],
        "description": "A Nest Thermostat",
        "properties": {
            "1": _NEST_ID,
            "2": {
                "@type": "EnumProperty",
                "name": "mode",
                "title": "Mode",
                "description": "Set operation mode of the thermostat",
                "type": "string",
                "enum": ["heat", "cool", "heat-cool", "off"],
            },
            "3": _fahrenheit(
                "target-temperature", "Target Temp",
                "Target temperature in fahrenheit", 50, 90,
            ),
            "4": _HUMIDITY,
            "5": _fahrenheit(
                "temperature-range-low", "Temp Range Low", "Low temperature range", 50, 90,
            ),
            "6": _fahrenheit(
                "temperature-range-high", "Temp Range High", "High temperature range", 50, 90,
            ),
            "7": _UNITS,
            "8": _AWAY_MODE,
            # documented by the hub as a string, but it carries "true"/"false"
            "9": {
                "@type": "BooleanProperty",
                "name": "fan-state",
                "title": "Fan State",
                "description": "Current state of the fan",
                "type": "boolean",
            },
            "10": _TEMPERATURE,
            "11": _read_only_flag("is-online", "Online", "Whether the thermostat is online"),
            "12": _read_only_flag("can-cool", "Can Cool", "Whether the thermostat can cool"),
            "13": _read_only_flag("can-heat", "Can Heat", "Whether the thermostat can heat"),
            "14": _read_only_flag(
                "using-emergency-heat",
                "Using Emergency Heat",
                "Whether the thermostat is in emergency heat mode, due to the "
                "temperature dropping below the safety threshold",
            ),
            "15": _read_only_flag("has-fan", "Has Fan", "Whether the thermostat has control of a fan"),
            "16": {
                "@type": "EnumProperty",
                "name": "hvac-state",
                "title": "HVAC State",
                "description": "Current state of the HVAC system",
                "type": "enum",
                "enum": ["heating", "cooling", "off"],
                "readOnly": True,
            },
            "17": _read_only_flag(
                "leaf", "Leaf", 'Whether the thermostat has a "leaf" denoting energy-efficiency',
            ),
            "18": _RESPONSE_CODE,
        },
    },
    "58": {
        "@type": ["NestProtect", "SmokeDetector", "CODetector"],
        "description": "A Nest Protect Smoke/CO Detector",
        "properties": {
            "1": _NEST_ID,
            "2": {
                "@type": "EnumProperty",
                "name": "battery",
                "title": "Battery",
                "description": "Battery status",
                "type": "string",
                "enum": ["ok", "replace"],
                "readOnly": True,
            },
            "3": {
                "@type": "EnumProperty",
                "name": "co-alarm-state",
                "title": "CO Alarm State",
                "description": "State of the CO detector",
                "type": "string",
                "enum": ["ok", "warning", "replace"],
                "readOnly": True,
            },
            "4": {
                "@type": "EnumProperty",
                "name": "smoke-alarm-state",
                "title": "Smoke Alarm State",
                "description": "State of the smoke detector",
                "type": "string",
                "enum": ["ok", "warning", "replace"],
                "readOnly": True,
            },
            "5": _read_only_flag("is-online", "Online", "Whether the detector is online"),
            "6": _AWAY_MODE,
            "7": _RESPONSE_CODE,
        },
    },
}

DEVICE_MAP: Mapping[str, CapabilityRecord] = MappingProxyType(
    {code: CapabilityRecord.model_validate(raw) for code, raw in _RAW_MAP.items()}
)


def known_type_codes() -> list[str]:
    """Return the supported device type codes in numeric order."""
    return sorted(DEVICE_MAP, key=int)
