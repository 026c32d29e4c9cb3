"""BLE-related CLI commands for listening to RuuviTag broadcasts."""

import asyncio

from ruuvitag_data.ble import RuuviTagListener, discover_tags
from ruuvitag_data.models import TagReading, format_reading
from ruuvitag_data.session import SessionUpdate

from ..ui import DIM, RESET, Spinner, separator_line
from .config import get_config


def parse_duration(duration_str: str) -> float | None:
    """Parse duration string to seconds.

    Formats: 30s, 5m, 1h, or a raw number of seconds.
    Returns None if empty or invalid.
    """
    if not duration_str:
        return None

    duration_str = duration_str.lower().strip()

    try:
        if duration_str.endswith('s'):
            return float(duration_str[:-1])
        elif duration_str.endswith('m'):
            return float(duration_str[:-1]) * 60
        elif duration_str.endswith('h'):
            return float(duration_str[:-1]) * 3600
        else:
            return float(duration_str)
    except ValueError:
        return None


def handle_ble(arg: str) -> None:
    """Handle BLE command with subcommands."""
    parts = arg.split(None, 1)
    subcmd = parts[0] if parts else ""
    subarg = parts[1] if len(parts) > 1 else ""

    if subcmd == "":
        _ble_status()
    elif subcmd == "scan":
        _ble_scan(subarg)
    elif subcmd == "listen":
        _ble_listen(subarg)
    else:
        print(f"Unknown subcommand: {subcmd}")
        print("\nUsage: ble [scan|listen] [duration]")


def _ble_status() -> None:
    """Show BLE settings and available commands."""
    config = get_config()

    print("BLE Status\n")
    print(f"  Scan timeout: {config.ble.scan_timeout}s")

    print("\nSubcommands:")
    print("  ble scan [duration]     Scan once and list RuuviTags")
    print("  ble listen [duration]   Listen to broadcasts and display")
    print(f"\n{DIM}Duration formats: 30s, 5m, 1h (default: until Ctrl+C){RESET}")


def _ble_scan(duration_arg: str) -> None:
    """Scan for RuuviTags and show their latest broadcast."""
    timeout = parse_duration(duration_arg)
    if duration_arg and timeout is None:
        print(f"Invalid duration: {duration_arg}")
        return
    if timeout is None:
        timeout = get_config().ble.scan_timeout

    try:
        with Spinner("Scanning"):
            found = asyncio.run(discover_tags(timeout))
    except ImportError:
        print("Error: bleak library not installed")
        print("Install with: pip install bleak")
        return
    except Exception as e:
        print(f"Scan failed: {e}")
        return

    if not found:
        print("No RuuviTags found.")
        print(f"\n{DIM}Make sure tags are powered on and nearby.{RESET}")
        return

    print(f"Found {len(found)} RuuviTag(s):\n")
    for address, rssi, reading in found:
        print(f"  {address}")
        print(f"    RSSI:   {rssi} dBm")
        if reading:
            print(f"    Format: {reading.data_format}")
            print(f"    {reading.format_metrics()}")
        else:
            print(f"    {DIM}→ Unsupported data format{RESET}")
        print()


def format_update(update: SessionUpdate) -> str:
    """Describe movement and missed measurements, empty if neither."""
    notes = []
    if update.movement:
        notes.append("moved")
    if update.missed:
        notes.append(f"missed {update.missed}")
    return f"{DIM}[{', '.join(notes)}]{RESET}" if notes else ""


def _ble_listen(duration_arg: str) -> None:
    """Listen to BLE broadcasts and display decoded readings."""
    duration = parse_duration(duration_arg)
    if duration_arg and duration is None:
        print(f"Invalid duration: {duration_arg}")
        return

    def on_reading(reading: TagReading, update: SessionUpdate):
        line = format_reading(reading)
        note = format_update(update)
        print(f"{line}  {note}" if note else line)

    listener = RuuviTagListener(get_config(), on_reading=on_reading)

    print("BLE listen - receiving broadcasts")
    print(f"{DIM}Press Ctrl+C to stop{RESET}\n")
    print(separator_line())

    try:
        listener.run(duration)
    except ImportError:
        print("Error: bleak library not installed")
        print("Install with: pip install bleak")
        return

    stats = listener.stats
    print(separator_line())
    print(
        f"\nReceived {stats['received']}, decoded {stats['decoded']}, "
        f"duplicates {stats['duplicates']}, errors {stats['errors']}"
    )
