"""Range and resolution metadata for decoded fields.

Each field gets {min, max, step}. Temperature, humidity and pressure take
the coarser of the format's native resolution and the configured display
precision; every other field has a fixed step set by its encoding.

Computed once per device, not per sample.
"""

from decimal import ROUND_HALF_UP, Decimal

from .config import Config, FeatureConfig
from .decoder import UnsupportedFormatVersion
from .models import FieldMetadata

# Decimal places kept when turning a precision into a step
TEMPERATURE_STEP_DECIMALS = 3
HUMIDITY_STEP_DECIMALS = 4
PRESSURE_STEP_DECIMALS = 2

ACCELERATION_FIELDS = ("acceleration_x", "acceleration_y", "acceleration_z")


def hpa(pa: float) -> float:
    """Convert Pa to hPa."""
    return pa / 100


def configured_step(precision: int, decimals: int) -> float:
    """Step for a display precision, kept to a fixed number of decimals.

    configured_step(1, 3) == 0.1, configured_step(5, 3) == 0.0
    """
    step = Decimal(1).scaleb(-precision)
    return float(step.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP))


def _acceleration() -> dict[str, FieldMetadata]:
    return {name: FieldMetadata(-32.767, 32.767, 0.001) for name in ACCELERATION_FIELDS}


def metadata_for(version: int, config: Config) -> dict[str, FieldMetadata]:
    """Build per-field metadata for a data format.

    Humidity ranges differ by format. RAWv1 reports 0-100 %, the physical
    range of relative humidity, even though its byte could carry 127.5.
    RAWv2 reports 163.835, the largest value its encoding can carry, so
    that no decoded value falls outside the advertised range.

    Args:
        version: Data format (3 or 5)
        config: Configuration holding the display precision

    Raises:
        UnsupportedFormatVersion: version is not 3 or 5
    """
    precision = config.precision
    temperature_step = configured_step(precision.temperature, TEMPERATURE_STEP_DECIMALS)
    humidity_step = configured_step(precision.humidity, HUMIDITY_STEP_DECIMALS)
    pressure_step = configured_step(precision.pressure, PRESSURE_STEP_DECIMALS)

    pressure = FieldMetadata(hpa(50000), hpa(101325), max(hpa(1), pressure_step))
    battery_voltage = FieldMetadata(1.6, 3.647, 0.001)

    if version == 3:
        return {
            "humidity": FieldMetadata(0, 100, max(0.5, humidity_step)),
            "temperature": FieldMetadata(-127.99, 127.99, max(0.01, temperature_step)),
            "pressure": pressure,
            "battery_voltage": battery_voltage,
            **_acceleration(),
        }
    elif version == 5:
        return {
            "temperature": FieldMetadata(-163.835, 163.835, max(0.005, temperature_step)),
            # 0xFFFE * 0.0025, the largest value the encoding can carry
            "humidity": FieldMetadata(0, 163.835, max(0.0025, humidity_step)),
            "pressure": pressure,
            "tx_power": FieldMetadata(-40, 20, 2),
            "battery_voltage": battery_voltage,
            **_acceleration(),
            "movement_counter": FieldMetadata(0, 254, 1),
            "measurement_sequence": FieldMetadata(0, 65534, 1),
        }
    raise UnsupportedFormatVersion(version)


def _disabled_fields(features: FeatureConfig) -> set[str]:
    disabled = set()
    if not features.acceleration:
        disabled.update(ACCELERATION_FIELDS)
    if not features.tx_power:
        disabled.add("tx_power")
    if not features.movement_counter:
        disabled.add("movement_counter")
    if not features.measurement_sequence:
        disabled.add("measurement_sequence")
    return disabled


def property_metadata(version: int, config: Config) -> dict[str, FieldMetadata]:
    """Metadata for the fields a device exposes under its feature flags."""
    disabled = _disabled_fields(config.features)
    return {
        name: meta
        for name, meta in metadata_for(version, config).items()
        if name not in disabled
    }
