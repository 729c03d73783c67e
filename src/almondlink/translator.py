"""Translate hub device records into capability schemas.

Translation is pure: the shared ``DEVICE_MAP`` entry is never touched, every
call returns a fresh ``CapabilityRecord`` carrying the device's current values.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from .device_map import DEVICE_MAP
from .errors import UnsupportedDeviceType
from .models import (
    CapabilityRecord,
    DeviceListResult,
    DeviceRecord,
    PropertySpec,
    TranslatedDevice,
    Unsupported,
)

logger = logging.getLogger(__name__)


def _schema_for(type_code: str) -> CapabilityRecord:
    try:
        return DEVICE_MAP[type_code]
    except KeyError:
        raise UnsupportedDeviceType(type_code) from None


def coerce_value(prop: PropertySpec, raw: Any) -> Any:
    """Convert a raw hub value according to the property's declared type.

    Integers and numbers that fail to parse are kept as the raw value and a
    warning is logged. Booleans are true only for the exact text ``"true"``.
    """
    match prop.type:
        case "integer":
            try:
                return int(str(raw).strip(), 10)
            except ValueError:
                logger.warning(
                    "Property '%s': %r is not an integer, keeping raw value",
                    prop.name,
                    raw,
                )
                return raw
        case "number":
            try:
                return float(str(raw).strip())
            except ValueError:
                logger.warning(
                    "Property '%s': %r is not a number, keeping raw value",
                    prop.name,
                    raw,
                )
                return raw
        case "boolean":
            return str(raw) == "true"
        case _:
            return raw


def translate(device: DeviceRecord) -> CapabilityRecord | Unsupported:
    """Map one hub device to its capability schema filled with live values."""
    try:
        schema = _schema_for(device.data.type)
    except UnsupportedDeviceType as exc:
        return Unsupported(
            device_id=device.data.id,
            type_code=exc.type_code,
            name=device.data.name,
            reason=str(exc),
        )

    properties: dict[str, PropertySpec] = {}
    for index, prop in schema.properties.items():
        entry = device.values.get(index)
        if entry is None or entry.value is None:
            properties[index] = prop.model_copy()
            continue
        properties[index] = prop.model_copy(update={"value": coerce_value(prop, entry.value)})

    return schema.model_copy(update={"properties": MappingProxyType(properties)})


def translate_device_list(devices: Mapping[str, Any]) -> DeviceListResult:
    """Translate a hub ``Devices`` map, reporting what had to be skipped."""
    result = DeviceListResult()
    for device_id, info in devices.items():
        try:
            record = DeviceRecord.model_validate(info)
        except ValidationError as exc:
            logger.warning("Skipping malformed device record %s: %s", device_id, exc)
            result.skipped.append(
                Unsupported(device_id=str(device_id), reason="malformed device record")
            )
            continue

        translated = translate(record)
        if isinstance(translated, Unsupported):
            logger.warning(
                "Device type unknown, skipping device %s (type %s)",
                device_id,
                translated.type_code,
            )
            result.skipped.append(translated)
            continue

        logger.info("Found Almond device: %s", device_id)
        logger.debug("Device data: %s", record.data.model_dump(by_alias=True))
        result.devices.append(
            TranslatedDevice(
                id=str(device_id),
                name=record.data.name,
                capabilities=translated,
            )
        )
    return result
