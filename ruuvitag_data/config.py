"""Configuration management for the RuuviTag decoder."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


class ConfigError(ValueError):
    """Raised when config.yaml holds an invalid value."""


def _precision(value, name: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"{name} precision must be a non-negative integer, got {value!r}")
    return value


@dataclass(frozen=True)
class PrecisionConfig:
    """Display precision (decimal places) for scaled fields."""

    temperature: int = 2
    humidity: int = 2
    pressure: int = 2

    def __post_init__(self):
        _precision(self.temperature, "temperature")
        _precision(self.humidity, "humidity")
        _precision(self.pressure, "pressure")


@dataclass(frozen=True)
class FeatureConfig:
    """Optional fields a device exposes besides the environmental ones."""

    acceleration: bool = True
    tx_power: bool = True
    movement_counter: bool = True
    measurement_sequence: bool = True


@dataclass
class MqttConfig:
    """Configuration for MQTT subscriber."""

    broker: str
    port: int = 1883
    topic: str = "ruuvi/#"
    username: str = ""
    password: str = ""
    client_id: str = "ruuvitag-decoder"


@dataclass
class BleConfig:
    """Configuration for passive BLE listening."""

    scan_timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = "INFO"


@dataclass
class Config:
    """Root configuration object."""

    precision: PrecisionConfig = field(default_factory=PrecisionConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    mqtt: MqttConfig | None = None
    ble: BleConfig = field(default_factory=BleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from a YAML file."""
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from a dictionary."""
        # Parse precision config
        p = data.get("precision") or {}
        precision = PrecisionConfig(
            temperature=p.get("temperature", 2),
            humidity=p.get("humidity", 2),
            pressure=p.get("pressure", 2),
        )

        # Parse feature flags
        f = data.get("features") or {}
        features = FeatureConfig(
            acceleration=bool(f.get("acceleration", True)),
            tx_power=bool(f.get("tx_power", True)),
            movement_counter=bool(f.get("movement_counter", True)),
            measurement_sequence=bool(f.get("measurement_sequence", True)),
        )

        # Parse MQTT config
        mqtt = None
        if "mqtt" in data:
            m = data["mqtt"]
            if "broker" not in m:
                raise ConfigError("mqtt.broker is required")
            mqtt = MqttConfig(
                broker=m["broker"],
                port=m.get("port", 1883),
                topic=m.get("topic", "ruuvi/#"),
                username=m.get("username", ""),
                password=m.get("password", ""),
                client_id=m.get("client_id", "ruuvitag-decoder"),
            )

        ble_data = data.get("ble") or {}
        ble = BleConfig(scan_timeout=float(ble_data.get("scan_timeout", 10.0)))

        log_data = data.get("logging") or {}
        logging = LoggingConfig(level=str(log_data.get("level", "INFO")).upper())

        return cls(
            precision=precision,
            features=features,
            mqtt=mqtt,
            ble=ble,
            logging=logging,
        )

    def to_dict(self) -> dict:
        """Serialize back to the config.yaml layout."""
        data = {
            "precision": {
                "temperature": self.precision.temperature,
                "humidity": self.precision.humidity,
                "pressure": self.precision.pressure,
            },
            "features": {
                "acceleration": self.features.acceleration,
                "tx_power": self.features.tx_power,
                "movement_counter": self.features.movement_counter,
                "measurement_sequence": self.features.measurement_sequence,
            },
            "ble": {"scan_timeout": self.ble.scan_timeout},
            "logging": {"level": self.logging.level},
        }
        if self.mqtt:
            data["mqtt"] = {
                "broker": self.mqtt.broker,
                "port": self.mqtt.port,
                "topic": self.mqtt.topic,
                "username": self.mqtt.username,
                "password": self.mqtt.password,
                "client_id": self.mqtt.client_id,
            }
        return data


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> Config:
    """Load configuration from file, or defaults if the file is missing."""
    if not Path(path).exists():
        return Config()
    return Config.from_yaml(path)


def save_config(config: Config, path: Path | str = DEFAULT_CONFIG_PATH) -> None:
    """Save configuration to file."""
    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
