"""Rounding of decoded values to the configured display precision.

Only temperature, humidity and pressure are scaled. Battery voltage,
TX power, acceleration and counters keep the resolution the decoder
gives them.
"""

import dataclasses
from decimal import ROUND_HALF_UP, Decimal, localcontext

from .config import PrecisionConfig
from .models import Measurement


def scale(value: float | None, precision: int) -> float | None:
    """Round value to precision decimal places, half away from zero.

    Rounds the shortest decimal form of the float, so 26.345 -> 26.3 and
    26.35 -> 26.4 at one decimal. None (unavailable) passes through.
    """
    if precision < 0:
        raise ValueError(f"precision must be >= 0, got {precision}")
    if value is None:
        return None
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        # quantize needs room for every integer and fractional digit
        ctx.prec = max(ctx.prec, exact.adjusted() + precision + 2)
        rounded = exact.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    # + 0.0 turns -0.0 into 0.0
    return float(rounded) + 0.0


def scale_measurement(measurement: Measurement, precision: PrecisionConfig) -> Measurement:
    """Return a copy of measurement with environmental fields scaled."""
    return dataclasses.replace(
        measurement,
        temperature=scale(measurement.temperature, precision.temperature),
        humidity=scale(measurement.humidity, precision.humidity),
        pressure=scale(measurement.pressure, precision.pressure),
    )
