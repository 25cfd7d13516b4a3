"""Domain records shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


@dataclass(frozen=True, slots=True)
class DeviceAboveThreshold:
    """A device whose reading exceeded the configured threshold."""

    id: str
    name: str
    measured_value: float
    temperature_celsius: float


@dataclass
class DeliveryTally:
    """Outcome of one notification channel fanning out to its recipients."""

    channel: str
    success_count: int = 0
    failure_count: int = 0

    @property
    def attempted(self) -> int:
        return self.success_count + self.failure_count


@dataclass
class CheckSummary:
    total_devices: int = 0
    devices_checked: int = 0
    devices_above_threshold: int = 0
    deliveries: List[DeliveryTally] = field(default_factory=list)
    failed_channels: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RotationResult:
    expires_at: int


class TokenState(str, Enum):
    """Lifecycle of the stored bearer token."""

    valid = "valid"
    expired_or_absent = "expired_or_absent"
