"""Pydantic schemas for the Danfoss Ally device registry payloads."""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

StatusValue = Union[bool, int, float, str, None]


class DeviceStatus(BaseModel):
    """A single ``(code, value)`` status reading reported by a device."""

    code: str
    value: StatusValue = None


class Device(BaseModel):
    """Snapshot of a registry device and its status readings."""

    id: str
    name: str = "Unknown"
    status: List[DeviceStatus] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> Any:
        return value or "Unknown"

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        return [] if value is None else value


class DevicesResponse(BaseModel):
    """Envelope returned by ``GET /ally/devices``."""

    result: List[Device] = Field(default_factory=list)
    t: Optional[float] = None

    @field_validator("result", mode="before")
    @classmethod
    def _default_result(cls, value: Any) -> Any:
        return [] if value is None else value
