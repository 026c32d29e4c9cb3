"""Tests for field range/step metadata."""

import pytest

from ruuvitag_data.config import Config, FeatureConfig, PrecisionConfig
from ruuvitag_data.decoder import UnsupportedFormatVersion
from ruuvitag_data.metadata import configured_step, metadata_for, property_metadata
from ruuvitag_data.models import FieldMetadata

# Finest resolution each format can encode
NATIVE_STEPS = {
    3: {"temperature": 0.01, "humidity": 0.5, "pressure": 0.01},
    5: {"temperature": 0.005, "humidity": 0.0025, "pressure": 0.01},
}


def make_config(temperature=2, humidity=2, pressure=2, **features) -> Config:
    return Config(
        precision=PrecisionConfig(temperature, humidity, pressure),
        features=FeatureConfig(**features),
    )


class TestConfiguredStep:
    """Tests for precision -> step conversion."""

    def test_whole_numbers(self):
        assert configured_step(0, 3) == 1.0

    def test_decimals(self):
        assert configured_step(1, 3) == 0.1
        assert configured_step(2, 2) == 0.01
        assert configured_step(4, 4) == 0.0001

    def test_beyond_kept_decimals(self):
        assert configured_step(4, 3) == 0.0
        assert configured_step(3, 2) == 0.0


class TestFormat3:
    """Tests for RAWv1 metadata."""

    def test_fields(self):
        metadata = metadata_for(3, make_config())
        assert set(metadata) == {
            "humidity",
            "temperature",
            "pressure",
            "battery_voltage",
            "acceleration_x",
            "acceleration_y",
            "acceleration_z",
        }

    def test_default_precision(self):
        metadata = metadata_for(3, make_config())
        assert metadata["humidity"] == FieldMetadata(0, 100, 0.5)
        assert metadata["temperature"] == FieldMetadata(-127.99, 127.99, 0.01)
        assert metadata["pressure"] == FieldMetadata(500.0, 1013.25, 0.01)

    def test_humidity_keeps_physical_range(self):
        """RAWv1 reports 0-100 % although its byte encodes up to 127.5."""
        assert metadata_for(3, make_config())["humidity"].max == 100

    def test_fixed_fields(self):
        metadata = metadata_for(3, make_config())
        assert metadata["battery_voltage"] == FieldMetadata(1.6, 3.647, 0.001)
        assert metadata["acceleration_y"] == FieldMetadata(-32.767, 32.767, 0.001)

    def test_coarse_precision(self):
        metadata = metadata_for(3, make_config(temperature=0, humidity=0, pressure=0))
        assert metadata["temperature"].step == 1.0
        assert metadata["humidity"].step == 1.0
        assert metadata["pressure"].step == 1.0


class TestFormat5:
    """Tests for RAWv2 metadata."""

    def test_fields(self):
        metadata = metadata_for(5, make_config())
        assert set(metadata) == {
            "temperature",
            "humidity",
            "pressure",
            "tx_power",
            "battery_voltage",
            "acceleration_x",
            "acceleration_y",
            "acceleration_z",
            "movement_counter",
            "measurement_sequence",
        }

    def test_default_precision(self):
        metadata = metadata_for(5, make_config())
        assert metadata["temperature"] == FieldMetadata(-163.835, 163.835, 0.01)
        assert metadata["humidity"].step == 0.01
        assert metadata["pressure"] == FieldMetadata(500.0, 1013.25, 0.01)

    def test_humidity_reports_encodable_maximum(self):
        metadata = metadata_for(5, make_config())
        assert metadata["humidity"].min == 0
        assert metadata["humidity"].max == 163.835

    def test_fine_precision_stops_at_native(self):
        metadata = metadata_for(5, make_config(temperature=3, humidity=3, pressure=3))
        assert metadata["temperature"].step == 0.005
        assert metadata["humidity"].step == 0.0025
        assert metadata["pressure"].step == 0.01

    def test_counters(self):
        metadata = metadata_for(5, make_config())
        assert metadata["tx_power"] == FieldMetadata(-40, 20, 2)
        assert metadata["movement_counter"] == FieldMetadata(0, 254, 1)
        assert metadata["measurement_sequence"] == FieldMetadata(0, 65534, 1)


class TestStepFloor:
    """Step is never finer than what the format can encode."""

    @pytest.mark.parametrize("version", [3, 5])
    @pytest.mark.parametrize("precision", range(0, 9))
    def test_never_below_native(self, version, precision):
        metadata = metadata_for(version, make_config(precision, precision, precision))
        for name, native in NATIVE_STEPS[version].items():
            assert metadata[name].step >= native

    @pytest.mark.parametrize("precision", [0, 3, 8])
    def test_fixed_steps_ignore_precision(self, precision):
        metadata = metadata_for(5, make_config(precision, precision, precision))
        assert metadata["tx_power"].step == 2
        assert metadata["battery_voltage"].step == 0.001
        assert metadata["acceleration_x"].step == 0.001
        assert metadata["movement_counter"].step == 1


class TestUnknownVersion:
    def test_raises(self):
        with pytest.raises(UnsupportedFormatVersion) as exc_info:
            metadata_for(4, make_config())
        assert exc_info.value.version == 4


class TestPropertyMetadata:
    """Tests for feature-filtered metadata."""

    def test_all_features_on(self):
        config = make_config()
        assert property_metadata(5, config) == metadata_for(5, config)

    def test_acceleration_off(self):
        metadata = property_metadata(5, make_config(acceleration=False))
        assert "acceleration_x" not in metadata
        assert "acceleration_y" not in metadata
        assert "acceleration_z" not in metadata
        assert "tx_power" in metadata

    def test_counters_off(self):
        metadata = property_metadata(
            5,
            make_config(tx_power=False, movement_counter=False, measurement_sequence=False),
        )
        assert set(metadata) == {
            "temperature",
            "humidity",
            "pressure",
            "battery_voltage",
            "acceleration_x",
            "acceleration_y",
            "acceleration_z",
        }

    def test_environment_always_exposed(self):
        metadata = property_metadata(
            3,
            make_config(
                acceleration=False,
                tx_power=False,
                movement_counter=False,
                measurement_sequence=False,
            ),
        )
        assert set(metadata) == {"humidity", "temperature", "pressure", "battery_voltage"}
