"""Per-device state for consecutive broadcasts.

The decoder is stateless. Detecting repeated broadcasts, movement and
missed measurements needs the previous sample of the same device, which
a DeviceSession keeps.
"""

from dataclasses import dataclass

from .models import Measurement, MeasurementV5

# Sequence range excludes the "unavailable" value, so it wraps one short
MEASUREMENT_SEQUENCE_MODULUS = 0xFFFF  # 0..65534


@dataclass(frozen=True)
class SessionUpdate:
    """What changed between the previous and the current broadcast."""

    duplicate: bool = False
    movement: bool = False
    measurement_delta: int | None = None  # > 1 means measurements were missed

    @property
    def missed(self) -> int:
        """Number of measurements skipped since the previous one."""
        if not self.measurement_delta:
            return 0
        return self.measurement_delta - 1


def counter_delta(previous: int, current: int, modulus: int) -> int:
    """Forward distance from previous to current on a wrapping counter."""
    return (current - previous) % modulus


class DeviceSession:
    """Tracks counters of one device across broadcasts."""

    def __init__(self, device_id: str):
        self.device_id = device_id
        self.last_movement_counter: int | None = None
        self.last_measurement_sequence: int | None = None

    def update(self, measurement: Measurement) -> SessionUpdate:
        """Compare measurement with the previous one and remember it."""
        if not isinstance(measurement, MeasurementV5):
            # RAWv1 carries no counters
            return SessionUpdate()

        seq = measurement.measurement_sequence
        movements = measurement.movement_counter

        if seq is not None and seq == self.last_measurement_sequence:
            return SessionUpdate(duplicate=True)

        delta = None
        if seq is not None and self.last_measurement_sequence is not None:
            delta = counter_delta(
                self.last_measurement_sequence, seq, MEASUREMENT_SEQUENCE_MODULUS
            )

        moved = (
            movements is not None
            and self.last_movement_counter is not None
            and movements != self.last_movement_counter
        )

        if seq is not None:
            self.last_measurement_sequence = seq
        if movements is not None:
            self.last_movement_counter = movements

        return SessionUpdate(movement=moved, measurement_delta=delta)


class SessionTracker:
    """DeviceSession per device, created on first sight."""

    def __init__(self):
        self._sessions: dict[str, DeviceSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, device_id: str) -> DeviceSession:
        key = device_id.upper()
        session = self._sessions.get(key)
        if session is None:
            session = DeviceSession(key)
            self._sessions[key] = session
        return session

    def update(self, device_id: str, measurement: Measurement) -> SessionUpdate:
        return self.get(device_id).update(measurement)
