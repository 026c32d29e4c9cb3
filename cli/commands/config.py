"""Configuration CLI commands."""

import dataclasses

from ruuvitag_data.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    ConfigError,
    load_config,
    save_config,
)

from ..ui import DIM, RESET

CONFIG_PATH = DEFAULT_CONFIG_PATH

PRECISION_FIELDS = ("temperature", "humidity", "pressure")
FEATURE_NAMES = ("acceleration", "tx_power", "movement_counter", "measurement_sequence")


def mask_token(token: str | None) -> str:
    """Mask a secret for display, showing only first/last 4 chars."""
    if not token:
        return "(not set)"
    if len(token) <= 12:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


def parse_switch(value: str) -> bool | None:
    """Parse on/off style value. Returns None if not recognized."""
    value = value.lower().strip()
    if value in ("on", "true", "yes", "1"):
        return True
    if value in ("off", "false", "no", "0"):
        return False
    return None


def get_config() -> Config:
    """Load config.yaml from the CLI config path."""
    return load_config(CONFIG_PATH)


def handle_config(arg: str) -> None:
    """Handle config command with subcommands."""
    parts = arg.split()
    subcmd = parts[0] if parts else ""

    try:
        if subcmd == "":
            _show_config()
        elif subcmd == "precision" and len(parts) == 3:
            _set_precision(parts[1], parts[2])
        elif subcmd == "feature" and len(parts) == 3:
            _set_feature(parts[1], parts[2])
        else:
            print("Usage: config [precision <field> <n>|feature <name> on|off]")
    except ConfigError as e:
        print(f"Error: {e}")


def _show_config() -> None:
    """Show current configuration."""
    config = get_config()

    print("Configuration")
    print("=" * 50)

    print("\nPrecision (decimals):")
    for name in PRECISION_FIELDS:
        print(f"  {name:<14} {getattr(config.precision, name)}")

    print("\nFeatures:")
    for name in FEATURE_NAMES:
        state = "on" if getattr(config.features, name) else "off"
        print(f"  {name:<22} {state}")

    print("\nMQTT:")
    if config.mqtt:
        print(f"  broker:    {config.mqtt.broker}:{config.mqtt.port}")
        print(f"  topic:     {config.mqtt.topic}")
        if config.mqtt.username:
            print(f"  username:  {config.mqtt.username}")
            print(f"  password:  {mask_token(config.mqtt.password)}")
    else:
        print(f"  {DIM}(not configured){RESET}")

    print("\nBLE:")
    print(f"  scan_timeout: {config.ble.scan_timeout}s")
    print(f"\nLog level: {config.logging.level}")


def _set_precision(field: str, value: str) -> None:
    """Set display precision for one field."""
    if field not in PRECISION_FIELDS:
        print(f"Unknown field: {field}")
        print(f"Fields: {', '.join(PRECISION_FIELDS)}")
        return
    try:
        precision = int(value)
    except ValueError:
        raise ConfigError(f"{field} precision must be a non-negative integer, got {value!r}")

    config = get_config()
    config.precision = dataclasses.replace(config.precision, **{field: precision})
    save_config(config, CONFIG_PATH)
    print(f"{field} precision set to {precision}")


def _set_feature(name: str, value: str) -> None:
    """Enable or disable an optional field."""
    if name not in FEATURE_NAMES:
        print(f"Unknown feature: {name}")
        print(f"Features: {', '.join(FEATURE_NAMES)}")
        return
    enabled = parse_switch(value)
    if enabled is None:
        print(f"Expected on or off, got: {value}")
        return

    config = get_config()
    config.features = dataclasses.replace(config.features, **{name: enabled})
    save_config(config, CONFIG_PATH)
    print(f"{name} {'enabled' if enabled else 'disabled'}")
