"""MQTT subscriber for Ruuvi Gateway raw advertisement messages.

The gateway relays every advertisement it hears as JSON:

    {
        "gw_mac": "AA:BB:CC:DD:EE:FF",
        "rssi": -36,
        "data": "0201061BFF99040512FC5394...",
        "ts": "2025-12-31T17:00:00Z",  # optional, ISO string or unix int
        "coordinates": ""  # optional
    }

on topics of the form ruuvi/<gw_mac>/<tag_mac>.
"""

import json
import logging
import threading
from datetime import datetime
from typing import Callable

import paho.mqtt.client as mqtt

from .config import Config
from .decoder import DecodeError, decode_raw_data
from .models import Measurement, MeasurementV5, TagReading
from .scaling import scale_measurement
from .session import SessionTracker, SessionUpdate

logger = logging.getLogger(__name__)


def parse_timestamp(ts) -> datetime:
    """Gateway 'ts' value as a datetime, or now when absent or unreadable."""
    if isinstance(ts, int) and not isinstance(ts, bool):
        try:
            return datetime.fromtimestamp(ts)
        except (OverflowError, OSError, ValueError):
            return datetime.now()
    if isinstance(ts, str) and ts:
        try:
            return datetime.fromisoformat(ts.replace("Z", "+00:00"))
        except ValueError:
            return datetime.now()
    return datetime.now()


def tag_id(measurement: Measurement, topic: str) -> str:
    """Device id: the MAC carried in the payload, else the topic's last segment."""
    if isinstance(measurement, MeasurementV5) and measurement.mac:
        return measurement.mac
    if not topic:
        return ""
    return topic.rstrip("/").rsplit("/", 1)[-1].upper()


def parse_mqtt_message(payload: bytes, topic: str = "") -> TagReading | None:
    """Parse one gateway message into an unscaled TagReading.

    Returns:
        TagReading, or None for payloads that are not gateway JSON or carry
        no Ruuvi manufacturer data

    Raises:
        DecodeError: Ruuvi data that is truncated or of an unknown format
    """
    try:
        message = json.loads(payload)
    except json.JSONDecodeError:
        return None
    if not isinstance(message, dict):
        return None
    raw_data = message.get("data")
    if not isinstance(raw_data, str) or not raw_data:
        return None

    measurement = decode_raw_data(raw_data)
    if measurement is None:
        return None

    return TagReading(
        device_id=tag_id(measurement, topic),
        timestamp=parse_timestamp(message.get("ts")),
        measurement=measurement,
        rssi=message.get("rssi"),
    )


class MqttSubscriber:
    """Decodes gateway messages and hands new readings to a callback.

    Readings pass through a SessionTracker so that the same broadcast
    relayed twice is delivered once; delivered readings carry the
    configured display precision.
    """

    def __init__(
        self,
        config: Config,
        on_reading: Callable[[TagReading, SessionUpdate], None] | None = None,
    ):
        if config.mqtt is None:
            raise ValueError("MQTT is not configured")
        self.config = config
        self.on_reading = on_reading
        self.sessions = SessionTracker()
        self.stats = {"received": 0, "decoded": 0, "duplicates": 0, "errors": 0}
        self._client: mqtt.Client | None = None
        self._stopped = threading.Event()

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        topic = self.config.mqtt.topic
        if reason_code == 0:
            logger.info("Connected to %s, subscribing to %s", self.config.mqtt.broker, topic)
            client.subscribe(topic)
        else:
            logger.error("Broker refused connection: %s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0 and not self._stopped.is_set():
            logger.warning("Disconnected from broker: %s", reason_code)

    def _on_message(self, client, userdata, msg):
        self.stats["received"] += 1
        try:
            reading = parse_mqtt_message(msg.payload, msg.topic)
        except DecodeError as e:
            reading = None
            logger.debug("Dropping message on %s: %s", msg.topic, e)
        if reading is None:
            self.stats["errors"] += 1
            return
        self.stats["decoded"] += 1

        update = self.sessions.update(reading.device_id, reading.measurement)
        if update.duplicate:
            self.stats["duplicates"] += 1
            return

        reading.measurement = scale_measurement(reading.measurement, self.config.precision)
        if self.on_reading:
            self.on_reading(reading, update)

    def connect(self) -> bool:
        """Create the client and connect; False when the broker is unreachable."""
        settings = self.config.mqtt
        client = mqtt.Client(
            client_id=settings.client_id,
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        )
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message

        try:
            client.connect(settings.broker, settings.port)
        except OSError as e:
            logger.error("Cannot reach %s:%s: %s", settings.broker, settings.port, e)
            return False
        self._client = client
        return True

    def run(self, duration: float | None = None):
        """Process messages for duration seconds, or until stop()/Ctrl+C."""
        if self._client is None and not self.connect():
            return

        self._stopped.clear()
        self._client.loop_start()
        try:
            self._stopped.wait(duration)
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self):
        """Disconnect and end run()."""
        self._stopped.set()
        if self._client:
            self._client.disconnect()
            self._client.loop_stop()
