"""MCP server for decoding RuuviTag advertisements.

Lets AI clients turn raw Ruuvi BLE data into measurements and look up the
valid range and resolution of each field.

Tools:
- decode_advertisement(): Decode a hex advertisement into measurements
- field_metadata(): Min/max/step per field for a data format
"""

import dataclasses

from mcp.server.fastmcp import FastMCP

from ruuvitag_data.config import load_config
from ruuvitag_data.decoder import DecodeError, decode_raw_data
from ruuvitag_data.metadata import metadata_for, property_metadata
from ruuvitag_data.models import Measurement, get_format_name
from ruuvitag_data.scaling import scale_measurement

mcp = FastMCP(name="RuuviTag Decoder")
config = load_config()


@mcp.resource("ruuvitag://formats")
def get_formats() -> str:
    """Description of the supported RuuviTag data formats."""
    return """# RuuviTag Data Formats

## Format 3 (RAWv1)
Humidity (0.5 %), temperature (0.01 °C), pressure (hPa), acceleration (G),
battery voltage (V). Every field is always present.

## Format 5 (RAWv2)
Temperature (0.005 °C), humidity (0.0025 %), pressure (hPa), acceleration
(G), battery voltage (V), TX power (dBm), movement counter, measurement
sequence, MAC address. Temperature, humidity, pressure, battery voltage,
TX power and both counters may be null when the tag reports them as
unavailable. A null is never a zero reading.

## Input
Hex of a full advertisement (containing FF9904), of a manufacturer data
element starting with 9904, or of a payload starting with 03 or 05.
"""


def _measurement_dict(measurement: Measurement) -> dict:
    """Convert a measurement to a JSON-friendly dict."""
    result = dataclasses.asdict(measurement)
    result["format_name"] = get_format_name(measurement.version)
    return result


@mcp.tool()
def decode_advertisement(hex_data: str, scaled: bool = True) -> dict:
    """Decode a RuuviTag advertisement.

    Args:
        hex_data: Advertisement bytes as hex
        scaled: Round temperature/humidity/pressure to the configured precision

    Returns:
        Decoded fields; unavailable fields are null
    """
    try:
        measurement = decode_raw_data(hex_data)
    except DecodeError as e:
        return {"error": str(e)}
    if measurement is None:
        return {"error": "No Ruuvi manufacturer data found"}

    if scaled:
        measurement = scale_measurement(measurement, config.precision)
    return _measurement_dict(measurement)


@mcp.tool()
def field_metadata(version: int, exposed_only: bool = False) -> dict:
    """Get the valid range and resolution of each field.

    Args:
        version: Data format (3 or 5)
        exposed_only: Only include fields enabled in the feature settings

    Returns:
        {field: {min, max, step}}
    """
    try:
        if exposed_only:
            metadata = property_metadata(version, config)
        else:
            metadata = metadata_for(version, config)
    except DecodeError as e:
        return {"error": str(e)}
    return {name: dataclasses.asdict(meta) for name, meta in metadata.items()}


def main():
    """Run the MCP server."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
