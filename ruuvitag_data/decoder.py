"""Decoder for RuuviTag manufacturer-specific BLE advertisement data.

Supports data formats 3 (RAWv1) and 5 (RAWv2).

A raw buffer is one manufacturer data element as heard over the air:
2-byte company id, 1-byte data format, then the format payload. Offsets
in this module are relative to the data format byte.
"""

from .models import DATA_FORMAT_INFO, Measurement, MeasurementV3, MeasurementV5

COMPANY_ID_LENGTH = 2

# Payload length including the data format byte
FORMAT_3_LENGTH = 14
FORMAT_5_LENGTH = 18
FORMAT_5_MAC_LENGTH = 24

# Power info word: battery voltage in the high 11 bits, TX power in the low 5
BATTERY_BITS = 11
TX_POWER_BITS = 5
BATTERY_UNAVAILABLE = (1 << BATTERY_BITS) - 1  # 2047
TX_POWER_UNAVAILABLE = (1 << TX_POWER_BITS) - 1  # 31

# AD structure marker: type 0xFF (manufacturer data) + company id 0x0499 (LE)
RUUVI_AD_MARKER = bytes([0xFF, 0x99, 0x04])


class DecodeError(ValueError):
    """Raised when a buffer cannot be decoded into a measurement."""


class UnsupportedFormatVersion(DecodeError):
    """Data format byte is not one this decoder understands."""

    def __init__(self, version: int):
        self.version = version
        super().__init__(f"Unsupported data format: {version}")


class TruncatedPayload(DecodeError):
    """Buffer is shorter than its data format requires."""

    def __init__(self, version: int | None, required: int, actual: int):
        self.version = version
        self.required = required
        self.actual = actual
        super().__init__(
            f"Truncated payload for format {version}: "
            f"need {required} bytes, got {actual}"
        )


def decode(buffer: bytes) -> Measurement:
    """Decode one manufacturer data element.

    Args:
        buffer: Company id, data format byte and payload

    Returns:
        MeasurementV3 or MeasurementV5, chosen by the data format byte only

    Raises:
        UnsupportedFormatVersion: data format is not 3 or 5
        TruncatedPayload: buffer is too short for its data format
    """
    if len(buffer) <= COMPANY_ID_LENGTH:
        raise TruncatedPayload(None, COMPANY_ID_LENGTH + 1, len(buffer))

    payload = bytes(buffer[COMPANY_ID_LENGTH:])
    version = payload[0]

    if version == 3:
        _require(payload, version, FORMAT_3_LENGTH)
        return _decode_03(payload)
    elif version == 5:
        _require(payload, version, FORMAT_5_LENGTH)
        return _decode_05(payload)
    raise UnsupportedFormatVersion(version)


def _require(payload: bytes, version: int, length: int) -> None:
    if len(payload) < length:
        raise TruncatedPayload(
            version, COMPANY_ID_LENGTH + length, COMPANY_ID_LENGTH + len(payload)
        )


def _u16(payload: bytes, offset: int) -> int:
    return (payload[offset] << 8) | payload[offset + 1]


def _s16(payload: bytes, offset: int) -> int:
    val = _u16(payload, offset)
    return val if val < 0x8000 else val - 0x10000


def _hpa(pa: int) -> float:
    return round(pa / 100, 2)


def _decode_03(payload: bytes) -> MeasurementV3:
    """Decode RuuviTag RAWv1 format (03).

    14-byte payload layout:
    0:      Data format (0x03)
    1:      Humidity (× 0.5 %)
    2:      Temperature integer part, bit 7 = sign (sign-magnitude)
    3:      Temperature fraction (1/100 °C)
    4-5:    Pressure (+ 50000 Pa)
    6-7:    Acceleration X (signed, mG)
    8-9:    Acceleration Y (signed, mG)
    10-11:  Acceleration Z (signed, mG)
    12-13:  Battery voltage (mV)
    """
    humidity = payload[1] * 0.5

    temp_byte = payload[2]
    sign = -1 if temp_byte & 0x80 else 1
    temperature = sign * ((temp_byte & 0x7F) + payload[3] / 100)

    return MeasurementV3(
        humidity=humidity,
        temperature=round(temperature, 2) + 0.0,  # sign bit with zero magnitude is 0.0
        pressure=_hpa(_u16(payload, 4) + 50000),
        acceleration_x=_s16(payload, 6) / 1000,
        acceleration_y=_s16(payload, 8) / 1000,
        acceleration_z=_s16(payload, 10) / 1000,
        battery_voltage=_u16(payload, 12) / 1000,
    )


def unpack_power_info(power_raw: int) -> tuple[float | None, int | None]:
    """Split the RAWv2 power info word into battery voltage and TX power.

    Returns:
        (battery_voltage in V, tx_power in dBm); each is None on its own
        sentinel, independently of the other.
    """
    battery_raw = power_raw >> TX_POWER_BITS
    tx_raw = power_raw & TX_POWER_UNAVAILABLE

    battery_voltage = None
    if battery_raw != BATTERY_UNAVAILABLE:
        battery_voltage = round(battery_raw / 1000 + 1.6, 3)

    tx_power = None
    if tx_raw != TX_POWER_UNAVAILABLE:
        tx_power = tx_raw * 2 - 40

    return battery_voltage, tx_power


def _decode_05(payload: bytes) -> MeasurementV5:
    """Decode RuuviTag RAWv2 format (05).

    18-byte payload layout, optionally followed by the MAC address:
    0:      Data format (0x05)
    1-2:    Temperature (signed, × 0.005 °C), 0x8000 = n/a
    3-4:    Humidity (× 0.0025 %), 0xFFFF = n/a
    5-6:    Pressure (+ 50000 Pa), 0xFFFF = n/a
    7-8:    Acceleration X (signed, mG)
    9-10:   Acceleration Y (signed, mG)
    11-12:  Acceleration Z (signed, mG)
    13-14:  Battery voltage (11 bits) + TX power (5 bits)
    15:     Movement counter, 0xFF = n/a
    16-17:  Measurement sequence, 0xFFFF = n/a
    18-23:  MAC address (optional)
    """
    temp_raw = _s16(payload, 1)
    temperature = round(temp_raw * 0.005, 3) if temp_raw != -0x8000 else None

    hum_raw = _u16(payload, 3)
    humidity = round(hum_raw * 0.0025, 4) if hum_raw != 0xFFFF else None

    pres_raw = _u16(payload, 5)
    pressure = _hpa(pres_raw + 50000) if pres_raw != 0xFFFF else None

    battery_voltage, tx_power = unpack_power_info(_u16(payload, 13))

    mc = payload[15]
    movement_counter = mc if mc != 0xFF else None

    seq = _u16(payload, 16)
    measurement_sequence = seq if seq != 0xFFFF else None

    mac = None
    if len(payload) >= FORMAT_5_MAC_LENGTH:
        mac = ":".join(f"{b:02X}" for b in payload[18:24])

    return MeasurementV5(
        temperature=temperature,
        humidity=humidity,
        pressure=pressure,
        acceleration_x=_s16(payload, 7) / 1000,
        acceleration_y=_s16(payload, 9) / 1000,
        acceleration_z=_s16(payload, 11) / 1000,
        battery_voltage=battery_voltage,
        tx_power=tx_power,
        movement_counter=movement_counter,
        measurement_sequence=measurement_sequence,
        mac=mac,
    )


def extract_manufacturer_buffer(data: bytes) -> bytes | None:
    """Find the Ruuvi manufacturer data element in advertisement bytes.

    Accepts full advertisement data (AD structures, as relayed by Ruuvi
    Gateway), a bare element starting with the company id, or a bare
    payload starting with a known data format byte.

    Returns:
        Company id + data format + payload, or None if no Ruuvi element
    """
    if not data:
        return None
    company_id = RUUVI_AD_MARKER[1:]
    idx = data.find(RUUVI_AD_MARKER)
    if idx >= 0:
        # Skip the AD type byte, keep the company id
        return data[idx + 1 :]
    if data[:COMPANY_ID_LENGTH] == company_id:
        return data
    if data[0] in DATA_FORMAT_INFO:
        return company_id + data
    return None


def decode_raw_data(hex_data: str) -> Measurement | None:
    """Decode a Ruuvi advertisement given as a hex string.

    Args:
        hex_data: Hex string, e.g. the 'data' field of a gateway message

    Returns:
        Decoded measurement, or None if the text is not hex or holds no
        Ruuvi manufacturer data

    Raises:
        DecodeError: Ruuvi data that is truncated or of an unknown format
    """
    try:
        data = bytes.fromhex(hex_data)
    except ValueError:
        return None

    buffer = extract_manufacturer_buffer(data)
    if buffer is None:
        return None
    return decode(buffer)
