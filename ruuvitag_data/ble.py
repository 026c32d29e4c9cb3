"""Passive BLE listener for RuuviTag broadcasts.

Listens to advertisements without connecting, picks out Ruuvi
manufacturer data and hands decoded readings to a callback.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from .config import Config
from .decoder import DecodeError, decode
from .models import MeasurementV5, TagReading
from .scaling import scale_measurement
from .session import SessionTracker, SessionUpdate

logger = logging.getLogger(__name__)

# Ruuvi manufacturer ID
RUUVI_MANUFACTURER_ID = 0x0499


def manufacturer_buffer(manufacturer_data: dict[int, bytes]) -> bytes | None:
    """Rebuild the raw buffer from bleak's manufacturer data dict.

    bleak strips the company id and uses it as the dict key; the decoder
    expects it in front of the data format byte.
    """
    data = manufacturer_data.get(RUUVI_MANUFACTURER_ID)
    if data is None:
        return None
    return RUUVI_MANUFACTURER_ID.to_bytes(2, "little") + bytes(data)


class RuuviTagListener:
    """Decode RuuviTag advertisements heard by a BleakScanner."""

    def __init__(
        self,
        config: Config,
        on_reading: Callable[[TagReading, SessionUpdate], None] | None = None,
    ):
        """Initialize listener.

        Args:
            config: Configuration (precision is applied to every reading)
            on_reading: Callback for each new, non-duplicate reading
        """
        self.config = config
        self.on_reading = on_reading
        self.sessions = SessionTracker()
        self.stats = {"received": 0, "decoded": 0, "duplicates": 0, "errors": 0}

    def _on_advertisement(self, device, adv_data) -> None:
        """Handle one advertisement from the scanner."""
        if not adv_data.manufacturer_data:
            return

        buffer = manufacturer_buffer(adv_data.manufacturer_data)
        if buffer is None:
            return

        self.stats["received"] += 1
        try:
            measurement = decode(buffer)
        except DecodeError as e:
            self.stats["errors"] += 1
            logger.debug("Dropping advertisement from %s: %s", device.address, e)
            return
        self.stats["decoded"] += 1

        # RAWv2 carries the MAC; otherwise fall back to the BLE address
        device_id = str(device.address)
        if isinstance(measurement, MeasurementV5) and measurement.mac:
            device_id = measurement.mac

        update = self.sessions.update(device_id, measurement)
        if update.duplicate:
            self.stats["duplicates"] += 1
            return
        if update.missed:
            logger.info("%s: missed %d measurement(s)", device_id, update.missed)

        reading = TagReading(
            device_id=device_id,
            timestamp=datetime.now(),
            measurement=scale_measurement(measurement, self.config.precision),
            rssi=adv_data.rssi,
        )
        if self.on_reading:
            self.on_reading(reading, update)

    async def listen(self, duration: float | None = None) -> None:
        """Scan for duration seconds, or until cancelled when None."""
        from bleak import BleakScanner

        scanner = BleakScanner(detection_callback=self._on_advertisement)
        logger.debug("Starting BLE scan (duration=%s)", duration)
        async with scanner:
            if duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(duration)
        logger.debug("BLE scan stopped: %s", self.stats)

    def run(self, duration: float | None = None) -> None:
        """Run the listener (blocking)."""
        try:
            asyncio.run(self.listen(duration))
        except KeyboardInterrupt:
            pass


async def discover_tags(timeout: float = 10.0) -> list[tuple[str, int, TagReading | None]]:
    """Scan once and list Ruuvi devices heard.

    Returns:
        (ble_address, rssi, reading) per device; reading is None if the
        advertisement could not be decoded
    """
    from bleak import BleakScanner

    devices = await BleakScanner.discover(timeout=timeout, return_adv=True)

    found = []
    for device, adv_data in devices.values():
        buffer = manufacturer_buffer(adv_data.manufacturer_data or {})
        if buffer is None:
            continue
        try:
            measurement = decode(buffer)
        except DecodeError as e:
            logger.debug("Undecodable advertisement from %s: %s", device.address, e)
            found.append((str(device.address), adv_data.rssi, None))
            continue
        reading = TagReading(
            device_id=str(device.address),
            timestamp=datetime.now(),
            measurement=measurement,
            rssi=adv_data.rssi,
        )
        found.append((str(device.address), adv_data.rssi, reading))
    return found
