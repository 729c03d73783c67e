"""Pydantic models shared by the correlation engine and the translator."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

logger = logging.getLogger(__name__)


def _as_type_tuple(value: Any) -> Any:
    # "@type" is a bare string on some properties and a list on others
    if isinstance(value, str):
        return (value,)
    return value


class PropertySpec(BaseModel):
    """Normalized description of one device property.

    ``value`` is only filled on translated copies, never in the table.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    semantic_types: tuple[str, ...] = Field(default=(), alias="@type")
    name: str
    title: str = ""
    description: str = ""
    type: str
    minimum: int | float | None = None
    maximum: int | float | None = None
    enum: tuple[Any, ...] | None = None
    unit: str | None = None
    read_only: bool = Field(default=False, alias="readOnly")
    visible: bool = True
    value: Any = None

    @field_validator("semantic_types", mode="before")
    @classmethod
    def _wrap_types(cls, value: Any) -> Any:
        return _as_type_tuple(value)


class CapabilityRecord(BaseModel):
    """Capability schema for one vendor device type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    semantic_types: tuple[str, ...] = Field(default=(), alias="@type")
    description: str = ""
    properties: Mapping[str, PropertySpec] = Field(default_factory=dict, validate_default=True)

    @field_validator("semantic_types", mode="before")
    @classmethod
    def _wrap_types(cls, value: Any) -> Any:
        return _as_type_tuple(value)

    @field_validator("properties")
    @classmethod
    def _freeze_properties(cls, value: Mapping[str, PropertySpec]) -> Mapping[str, PropertySpec]:
        return MappingProxyType(dict(value))

    @field_serializer("properties", mode="wrap")
    def _dump_properties(self, value: Mapping[str, PropertySpec], handler: Any) -> Any:
        return handler(dict(value))

    def to_schema(self) -> dict[str, Any]:
        """Dump using the wire names (``@type``, ``readOnly``)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Vendor (hub) records
# ---------------------------------------------------------------------------


class DeviceData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="ID")
    type: str = Field(alias="Type")
    name: str = Field(default="", alias="Name")

    @field_validator("id", "type", "name", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class DeviceValue(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    value: Any = Field(default=None, alias="Value")


class DeviceRecord(BaseModel):
    """One entry of the hub's ``Devices`` map."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data: DeviceData = Field(alias="Data")
    values: dict[str, DeviceValue] = Field(default_factory=dict, alias="DeviceValues")

    @field_validator("values", mode="before")
    @classmethod
    def _drop_bare_values(cls, value: Any) -> Any:
        # a bare scalar in place of {"Value": ...} only loses that one index
        if not isinstance(value, Mapping):
            return value
        kept = {}
        for index, entry in value.items():
            if isinstance(entry, (Mapping, DeviceValue)):
                kept[index] = entry
            else:
                logger.warning("Ignoring device value %s: expected an object, got %r", index, entry)
        return kept


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Response(BaseModel):
    """Outcome of a correlated request."""

    mii: str
    sent: dict[str, Any]
    received: dict[str, Any] | None = None
    cancelled: bool = False
    sent_at: datetime
    received_at: datetime


class TranslatedDevice(BaseModel):
    id: str
    name: str
    capabilities: CapabilityRecord


class Unsupported(BaseModel):
    """A device the translator could not map to a capability schema."""

    device_id: str | None = None
    type_code: str | None = None
    name: str = ""
    reason: str


class DeviceListResult(BaseModel):
    devices: list[TranslatedDevice] = Field(default_factory=list)
    skipped: list[Unsupported] = Field(default_factory=list)
