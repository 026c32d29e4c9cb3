"""MQTT-related CLI commands."""

from ruuvitag_data.config import MqttConfig, save_config
from ruuvitag_data.models import TagReading, format_reading
from ruuvitag_data.mqtt import MqttSubscriber
from ruuvitag_data.session import SessionUpdate

from ..ui import DIM, RESET, separator_line
from . import config as config_cmd
from .ble import format_update, parse_duration


def handle_mqtt(arg: str) -> None:
    """Handle mqtt command with subcommands."""
    parts = arg.split(None, 1)
    subcmd = parts[0] if parts else ""

    if subcmd == "":
        _mqtt_status()
    elif subcmd == "config":
        _mqtt_config()
    elif subcmd == "listen":
        _mqtt_listen(parts[1] if len(parts) > 1 else "")
    else:
        print(f"Unknown subcommand: {subcmd}")
        print("\nUsage: mqtt [config|listen [dur]]")


def _mqtt_status() -> None:
    """Show MQTT configuration status."""
    mqtt_config = config_cmd.get_config().mqtt

    print("MQTT Status\n")

    if mqtt_config:
        print(f"  Broker:    {mqtt_config.broker}:{mqtt_config.port}")
        print(f"  Topic:     {mqtt_config.topic}")
        if mqtt_config.username:
            print(f"  Username:  {mqtt_config.username}")
        print(f"  Client ID: {mqtt_config.client_id}")
    else:
        print(f"  {DIM}Not configured{RESET}")

    print("\nSubcommands:")
    print("  mqtt config        Configure MQTT broker")
    print("  mqtt listen [dur]  Subscribe and display decoded readings")


def _mqtt_config() -> None:
    """Configure MQTT broker interactively."""
    config = config_cmd.get_config()
    current = config.mqtt or MqttConfig(broker="")

    print("MQTT Configuration\n")
    print(f"{DIM}Press Enter to keep current value{RESET}\n")

    try:
        broker = input(f"Broker [{current.broker}]: ").strip() or current.broker
        port_str = input(f"Port [{current.port}]: ").strip()
        topic = input(f"Topic [{current.topic}]: ").strip() or current.topic
        username = input(f"Username [{current.username}]: ").strip() or current.username
        password = current.password
        if username:
            password = input("Password [****]: ").strip() or current.password
    except (EOFError, KeyboardInterrupt):
        print("\nCancelled.")
        return

    if not broker:
        print("Broker is required.")
        return

    try:
        port = int(port_str) if port_str else current.port
    except ValueError:
        print(f"Invalid port: {port_str}")
        return

    config.mqtt = MqttConfig(
        broker=broker,
        port=port,
        topic=topic,
        username=username,
        password=password,
        client_id=current.client_id,
    )
    save_config(config, config_cmd.CONFIG_PATH)
    print("\nMQTT configuration saved.")


def _mqtt_listen(arg: str) -> None:
    """Subscribe to gateway messages and display decoded readings."""
    duration = None
    if arg:
        duration = parse_duration(arg)
        if duration is None:
            print(f"Invalid duration: {arg}")
            return

    config = config_cmd.get_config()
    if not config.mqtt:
        print("MQTT not configured. Run 'mqtt config' first.")
        return

    def on_reading(reading: TagReading, update: SessionUpdate):
        line = format_reading(reading)
        note = format_update(update)
        print(f"{line}  {note}" if note else line)

    subscriber = MqttSubscriber(config, on_reading=on_reading)

    print(f"MQTT listen - {config.mqtt.broker}:{config.mqtt.port} {config.mqtt.topic}")
    print(f"{DIM}Press Ctrl+C to stop{RESET}\n")
    print(separator_line())

    subscriber.run(duration)

    stats = subscriber.stats
    print(separator_line())
    print(
        f"\nReceived {stats['received']}, decoded {stats['decoded']}, "
        f"duplicates {stats['duplicates']}, errors {stats['errors']}"
    )
