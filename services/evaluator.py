"""Threshold evaluation for device temperature readings."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional

from models.devices import Device, StatusValue
from models.records import DeviceAboveThreshold

logger = logging.getLogger(__name__)

FLOOR_STATUS_CODE = "MeasuredValue"
ROOM_STATUS_CODE = "temp_current"


def to_celsius(raw_value: float) -> float:
    """Readings are reported in tenths of a degree Celsius."""
    return raw_value / 10.0


def _coerce_number(value: StatusValue) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(value.strip())
        except ValueError:
            return None
    # "inf" and "nan" parse as floats but are not readings.
    return number if math.isfinite(number) else None


def read_status_value(device: Device, status_code: str) -> Optional[float]:
    """Return the numeric value of the first status entry matching ``status_code``."""
    for status in device.status:
        if status.code == status_code:
            return _coerce_number(status.value)
    return None


class ThresholdEvaluator:
    """Pure evaluation component that can be unit tested in isolation."""

    def __init__(self, status_code: str = FLOOR_STATUS_CODE) -> None:
        self.status_code = status_code

    def check_temperatures(
        self, devices: Iterable[Device], threshold: int
    ) -> List[DeviceAboveThreshold]:
        above: List[DeviceAboveThreshold] = []

        for device in devices:
            measured_value = read_status_value(device, self.status_code)
            if measured_value is None or not measured_value > threshold:
                continue

            temperature_celsius = to_celsius(measured_value)
            above.append(
                DeviceAboveThreshold(
                    id=device.id,
                    name=device.name,
                    measured_value=measured_value,
                    temperature_celsius=temperature_celsius,
                )
            )
            logger.warning(
                "Alert: device %r has temperature %s°C",
                device.name,
                temperature_celsius,
                extra={
                    "device_id": device.id,
                    "device_name": device.name,
                    "measured_value": measured_value,
                },
            )

        return above
