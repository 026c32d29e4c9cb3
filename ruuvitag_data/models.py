"""Data models for decoded RuuviTag broadcasts."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Union


# RuuviTag data format mapping: format_id -> format_name
DATA_FORMAT_INFO: dict[int, str] = {
    3: "RAWv1",
    5: "RAWv2",
}


def get_format_name(data_format: int | None) -> str:
    """Get format name from data format byte."""
    if data_format is None:
        return "unknown"
    return DATA_FORMAT_INFO.get(data_format, "unknown")


@dataclass(frozen=True)
class FieldMetadata:
    """Legal range and display resolution for one field."""

    min: float
    max: float
    step: float


@dataclass(frozen=True)
class MeasurementV3:
    """Decoded RAWv1 (format 3) measurement.

    Format 3 has no "unavailable" convention, so every field is a number.

    Ranges:
    - humidity: % RH, 0-127.5 in 0.5 steps
    - temperature: °C, -127.99 to 127.99
    - pressure: hPa, 500.00-1155.35
    - battery_voltage: V
    - acceleration_x/y/z: G, ±32.767
    """

    humidity: float
    temperature: float
    pressure: float
    acceleration_x: float
    acceleration_y: float
    acceleration_z: float
    battery_voltage: float
    version: Literal[3] = 3

    def format_metrics(self) -> str:
        """Format measurement as a display string."""
        return _format_metrics(self)


@dataclass(frozen=True)
class MeasurementV5:
    """Decoded RAWv2 (format 5) measurement.

    None means the tag reported the field as unavailable. Acceleration
    has no sentinel and is always present.

    Ranges:
    - temperature: °C, ±163.835
    - humidity: % RH, 0-163.835
    - pressure: hPa, 500.00-1155.34
    - battery_voltage: V, 1.6-3.646
    - tx_power: dBm, -40 to +20 in 2 dBm steps
    - movement_counter: 0-254
    - measurement_sequence: 0-65534
    """

    temperature: float | None
    humidity: float | None
    pressure: float | None
    acceleration_x: float
    acceleration_y: float
    acceleration_z: float
    battery_voltage: float | None
    tx_power: int | None
    movement_counter: int | None
    measurement_sequence: int | None
    mac: str | None = None
    version: Literal[5] = 5

    def format_metrics(self) -> str:
        """Format measurement as a display string."""
        return _format_metrics(self)


Measurement = Union[MeasurementV3, MeasurementV5]


def _format_metrics(measurement: Measurement) -> str:
    parts = []
    if measurement.temperature is not None:
        parts.append(f"T:{measurement.temperature}°C")
    if measurement.humidity is not None:
        parts.append(f"H:{measurement.humidity}%")
    if measurement.pressure is not None:
        parts.append(f"P:{measurement.pressure}hPa")
    parts.append(
        f"Acc:{measurement.acceleration_x:.3f},"
        f"{measurement.acceleration_y:.3f},"
        f"{measurement.acceleration_z:.3f}"
    )
    if measurement.battery_voltage is not None:
        parts.append(f"Bat:{measurement.battery_voltage:.3f}V")
    if isinstance(measurement, MeasurementV5):
        if measurement.tx_power is not None:
            parts.append(f"Tx:{measurement.tx_power}dBm")
        if measurement.movement_counter is not None:
            parts.append(f"Mov:{measurement.movement_counter}")
        if measurement.measurement_sequence is not None:
            parts.append(f"Seq:{measurement.measurement_sequence}")
    return " ".join(parts)


@dataclass
class TagReading:
    """A decoded measurement stamped with where and when it was heard."""

    device_id: str  # MAC address, or BLE address when the format carries none
    timestamp: datetime
    measurement: Measurement
    rssi: int | None = None  # signal strength dBm

    @property
    def data_format(self) -> int:
        return self.measurement.version

    def format_metrics(self) -> str:
        return self.measurement.format_metrics()


def format_reading(
    reading: TagReading,
    device_lookup: dict[str, str] | None = None,
    include_date: bool = False,
) -> str:
    """Format a reading for display.

    Args:
        reading: The reading to format
        device_lookup: Optional dict mapping device id (uppercase) to nickname
        include_date: If True, include date in timestamp
    """
    if device_lookup:
        name = device_lookup.get(reading.device_id.upper()) or reading.device_id
    else:
        name = reading.device_id

    sensor_id = f"{get_format_name(reading.data_format)}/{name}"

    if include_date:
        time_str = reading.timestamp.strftime("%Y-%m-%d %H:%M:%S")
    else:
        time_str = reading.timestamp.strftime("%H:%M:%S")
    return f"{time_str}  {sensor_id}  {reading.format_metrics()}"
