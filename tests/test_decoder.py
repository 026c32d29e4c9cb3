"""Tests for BLE advertisement decoder."""

import dataclasses
import math
import struct

import pytest

from ruuvitag_data.decoder import (
    DecodeError,
    TruncatedPayload,
    UnsupportedFormatVersion,
    decode,
    decode_raw_data,
    extract_manufacturer_buffer,
    unpack_power_info,
)
from ruuvitag_data.models import MeasurementV3, MeasurementV5

COMPANY_ID = "0499"


def buffer(payload_hex: str) -> bytes:
    """Prefix a payload with the company id, as heard over the air."""
    return bytes.fromhex(COMPANY_ID + payload_hex)


class TestDecode03:
    """Tests for RuuviTag RAWv1 format (03)."""

    SAMPLE = "03291A1ECE1EFC18F94202CA0B53"
    MINIMUM = "0300FF6300008001800180010000"
    MAXIMUM = "03FF7F63FFFF7FFF7FFF7FFFFFFF"

    def test_sample(self):
        result = decode(buffer(self.SAMPLE))
        assert isinstance(result, MeasurementV3)
        assert result.version == 3
        assert result.temperature == 26.3
        assert result.humidity == 20.5
        assert result.pressure == 1027.66
        assert result.battery_voltage == 2.899

    def test_sample_acceleration(self):
        result = decode(buffer(self.SAMPLE))
        assert result.acceleration_x == -1.0
        assert result.acceleration_y == -1.726
        assert result.acceleration_z == 0.714

    def test_minimum_values(self):
        result = decode(buffer(self.MINIMUM))
        assert result.temperature == -127.99
        assert result.humidity == 0
        assert result.pressure == 500.0
        assert result.battery_voltage == 0
        assert result.acceleration_x == -32.767

    def test_maximum_values(self):
        result = decode(buffer(self.MAXIMUM))
        assert result.temperature == 127.99
        assert result.humidity == 127.5
        assert result.pressure == 1155.35
        assert result.battery_voltage == 65.535
        assert result.acceleration_z == 32.767

    def test_negative_zero_temperature(self):
        """Sign bit set on a zero magnitude decodes as plain 0.0."""
        result = decode(buffer("03" + "00" + "8000" + "00" * 10))
        assert result.temperature == 0.0
        assert math.copysign(1, result.temperature) == 1
        assert "T:0.0°C" in result.format_metrics()

    def test_sign_bit_only_affects_sign(self):
        """0x81 0x32 is -(1 + 0.50), not a two's complement value."""
        result = decode(buffer("03" + "00" + "8132" + "00" * 10))
        assert result.temperature == -1.5

    def test_trailing_bytes_ignored(self):
        assert decode(buffer(self.SAMPLE + "DEADBEEF")) == decode(buffer(self.SAMPLE))


class TestDecode05:
    """Tests for RuuviTag RAWv2 format (05)."""

    SAMPLE = "0512FC5394C37C0004FFFC040CAC364200CDCBB8334C884F"
    UNAVAILABLE = "058000FFFFFFFF800080008000FFFFFFFFFFFFFFFFFFFFFF"

    def _make_format5(
        self,
        temp_raw: int = 4860,
        hum_raw: int = 21396,
        pres_raw: int = 50044,
        power_raw: int = 0xAC36,
        movement: int = 66,
        seq: int = 205,
    ) -> bytes:
        """Build a format 5 buffer without MAC."""
        payload = struct.pack(
            ">BhHHhhhHBH", 5, temp_raw, hum_raw, pres_raw, 4, -4, 1036, power_raw, movement, seq
        )
        return bytes.fromhex(COMPANY_ID) + payload

    def test_sample(self):
        result = decode(buffer(self.SAMPLE))
        assert isinstance(result, MeasurementV5)
        assert result.version == 5
        assert result.temperature == 24.3
        assert result.humidity == 53.49
        assert result.pressure == 1000.44
        assert result.tx_power == 4
        assert result.battery_voltage == 2.977
        assert result.movement_counter == 66
        assert result.measurement_sequence == 205

    def test_sample_acceleration(self):
        result = decode(buffer(self.SAMPLE))
        assert result.acceleration_x == 0.004
        assert result.acceleration_y == -0.004
        assert result.acceleration_z == 1.036

    def test_mac(self):
        result = decode(buffer(self.SAMPLE))
        assert result.mac == "CB:B8:33:4C:88:4F"

    def test_no_mac_without_trailer(self):
        result = decode(self._make_format5())
        assert result.mac is None
        assert result.temperature == 24.3

    def test_all_unavailable(self):
        result = decode(buffer(self.UNAVAILABLE))
        assert result.temperature is None
        assert result.humidity is None
        assert result.pressure is None
        assert result.tx_power is None
        assert result.battery_voltage is None
        assert result.movement_counter is None
        assert result.measurement_sequence is None

    def test_acceleration_has_no_sentinel(self):
        """0x8000 acceleration is a value, not unavailable."""
        result = decode(buffer(self.UNAVAILABLE))
        assert result.acceleration_x == -32.768
        assert result.acceleration_y == -32.768
        assert result.acceleration_z == -32.768

    def test_negative_temperature(self):
        result = decode(self._make_format5(temp_raw=-4860))
        assert result.temperature == -24.3

    def test_temperature_extremes(self):
        assert decode(self._make_format5(temp_raw=32767)).temperature == 163.835
        assert decode(self._make_format5(temp_raw=-32767)).temperature == -163.835

    def test_zero_is_not_unavailable(self):
        result = decode(self._make_format5(temp_raw=0, hum_raw=0, pres_raw=0, movement=0, seq=0))
        assert result.temperature == 0
        assert result.humidity == 0
        assert result.pressure == 500.0
        assert result.movement_counter == 0
        assert result.measurement_sequence == 0

    def test_max_humidity(self):
        result = decode(self._make_format5(hum_raw=0xFFFE))
        assert result.humidity == 163.835

    def test_single_sentinels(self):
        result = decode(self._make_format5(pres_raw=0xFFFF, movement=0xFF))
        assert result.pressure is None
        assert result.movement_counter is None
        assert result.temperature == 24.3
        assert result.measurement_sequence == 205

    def test_frozen(self):
        result = decode(buffer(self.SAMPLE))
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.temperature = 0


class TestPowerInfo:
    """Tests for the packed battery/TX power word."""

    def test_sample(self):
        assert unpack_power_info(0xAC36) == (2.977, 4)

    def test_both_unavailable(self):
        assert unpack_power_info(0xFFFF) == (None, None)

    def test_battery_unavailable_tx_valid(self):
        battery, tx_power = unpack_power_info((2047 << 5) | 2)
        assert battery is None
        assert tx_power == -36

    def test_tx_unavailable_battery_valid(self):
        battery, tx_power = unpack_power_info(31)
        assert battery == 1.6
        assert tx_power is None

    def test_ranges(self):
        assert unpack_power_info(2046 << 5) == (3.646, -40)
        assert unpack_power_info(30) == (1.6, 20)


class TestDispatch:
    """Tests for routing on the data format byte."""

    def test_routes_on_version_only(self):
        assert isinstance(decode(buffer("03" + "00" * 13)), MeasurementV3)
        assert isinstance(decode(buffer("05" + "00" * 17)), MeasurementV5)

    def test_company_id_not_interpreted(self):
        sample = TestDecode05.SAMPLE
        other = bytes.fromhex("FFFF" + sample)
        assert decode(other) == decode(buffer(sample))

    def test_deterministic(self):
        data = buffer(TestDecode05.SAMPLE)
        assert decode(data) == decode(data)

    def test_accepts_bytearray(self):
        data = bytearray(buffer(TestDecode03.SAMPLE))
        assert decode(data).temperature == 26.3

    def test_unknown_version(self):
        with pytest.raises(UnsupportedFormatVersion) as exc_info:
            decode(buffer("04" + "00" * 20))
        assert exc_info.value.version == 4

    def test_unknown_version_is_decode_error(self):
        with pytest.raises(DecodeError):
            decode(buffer("E1" + "00" * 40))

    def test_truncated_format3(self):
        with pytest.raises(TruncatedPayload) as exc_info:
            decode(buffer("03291A"))
        assert exc_info.value.version == 3
        assert exc_info.value.required == 16
        assert exc_info.value.actual == 5

    def test_truncated_format5(self):
        with pytest.raises(TruncatedPayload) as exc_info:
            decode(buffer("05" + "00" * 16))
        assert exc_info.value.version == 5
        assert exc_info.value.required == 20

    def test_no_version_byte(self):
        with pytest.raises(TruncatedPayload) as exc_info:
            decode(bytes.fromhex(COMPANY_ID))
        assert exc_info.value.version is None

    def test_empty(self):
        with pytest.raises(TruncatedPayload):
            decode(b"")


class TestDecodeRawData:
    """Tests for hex input handling."""

    def test_full_advertisement(self):
        raw = "0201061BFF9904" + TestDecode05.SAMPLE
        decoded = decode_raw_data(raw)
        assert decoded.temperature == 24.3
        assert decoded.mac == "CB:B8:33:4C:88:4F"

    def test_manufacturer_element(self):
        decoded = decode_raw_data("9904" + TestDecode03.SAMPLE)
        assert decoded.temperature == 26.3

    def test_bare_payload(self):
        decoded = decode_raw_data(TestDecode03.SAMPLE)
        assert decoded.version == 3
        assert decoded.humidity == 20.5

    def test_lowercase_hex(self):
        decoded = decode_raw_data(TestDecode05.SAMPLE.lower())
        assert decoded.measurement_sequence == 205

    def test_empty_string(self):
        assert decode_raw_data("") is None

    def test_garbage(self):
        assert decode_raw_data("not hex") is None

    def test_wrong_manufacturer(self):
        assert decode_raw_data("2BFF1234E112045944B9FE") is None

    def test_truncated_ruuvi_data_raises(self):
        with pytest.raises(TruncatedPayload):
            decode_raw_data("0201061BFF990405")

    def test_extract_keeps_company_id(self):
        data = bytes.fromhex("0201061BFF9904" + TestDecode03.SAMPLE)
        assert extract_manufacturer_buffer(data) == bytes.fromhex("9904" + TestDecode03.SAMPLE)
