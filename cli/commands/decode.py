"""Decode and metadata CLI commands."""

import dataclasses

from ruuvitag_data.decoder import DecodeError, decode_raw_data
from ruuvitag_data.metadata import metadata_for, property_metadata
from ruuvitag_data.models import get_format_name
from ruuvitag_data.scaling import scale_measurement

from ..ui import DIM, RESET
from .config import get_config

FIELD_UNITS = {
    "temperature": "°C",
    "humidity": "%",
    "pressure": "hPa",
    "battery_voltage": "V",
    "acceleration_x": "G",
    "acceleration_y": "G",
    "acceleration_z": "G",
    "tx_power": "dBm",
}


def format_value(name: str, value) -> str:
    """Format a field value with its unit, or n/a when unavailable."""
    if value is None:
        return "n/a"
    unit = FIELD_UNITS.get(name)
    return f"{value} {unit}" if unit else str(value)


def do_decode(arg: str) -> None:
    """Decode a hex advertisement and print every field."""
    parts = arg.split()
    if not parts:
        print("Usage: decode <hex> [raw]")
        return
    raw = len(parts) > 1 and parts[1] == "raw"

    try:
        measurement = decode_raw_data(parts[0])
    except DecodeError as e:
        print(f"Error: {e}")
        return
    if measurement is None:
        print("No Ruuvi manufacturer data found.")
        return

    if not raw:
        measurement = scale_measurement(measurement, get_config().precision)

    print(f"Format {measurement.version} ({get_format_name(measurement.version)})\n")
    for name, value in dataclasses.asdict(measurement).items():
        if name == "version":
            continue
        print(f"  {name:<22} {format_value(name, value)}")
    if raw:
        print(f"\n{DIM}Values as decoded, no precision applied{RESET}")


def do_metadata(arg: str) -> None:
    """Print min/max/step of each field for a data format."""
    parts = arg.split()
    if not parts:
        print("Usage: metadata <3|5> [all]")
        return
    try:
        version = int(parts[0])
    except ValueError:
        print(f"Invalid data format: {parts[0]}")
        return
    show_all = len(parts) > 1 and parts[1] == "all"

    config = get_config()
    try:
        if show_all:
            metadata = metadata_for(version, config)
        else:
            metadata = property_metadata(version, config)
    except DecodeError as e:
        print(f"Error: {e}")
        return

    print(f"Format {version} ({get_format_name(version)})\n")
    print(f"  {'field':<22} {'min':>10} {'max':>10} {'step':>8}")
    for name, meta in metadata.items():
        print(f"  {name:<22} {meta.min:>10} {meta.max:>10} {meta.step:>8}")
