"""
Configuration for the coordinator.

Plain dataclasses with dict round-tripping, so the host process can load
them from whatever file format it prefers.
"""

from dataclasses import dataclass
from typing import Any, Dict

from home_sentry.core import topics


@dataclass
class CoordinatorConfig:
    """Coordinator behavior settings."""

    version: int = 1
    sensor_prefix: str = topics.SENSORS
    alarm_prefix: str = topics.ALARMS
    time_field: str = "time"  # Sensor payload key holding epoch millis
    value_field: str = "temp"  # Sensor payload key holding the reading
    history_size: int = 100  # Fired triggers kept for get_history()
    retain_triggers_on_reset: bool = False  # Keep user triggers after connection loss

    def __post_init__(self) -> None:
        if self.sensor_prefix == self.alarm_prefix:
            raise ValueError("sensor_prefix and alarm_prefix must differ")
        if "/" in self.sensor_prefix or "/" in self.alarm_prefix:
            raise ValueError("Topic prefixes must be a single segment")
        if self.history_size < 0:
            raise ValueError("history_size must not be negative")

    @property
    def categories(self) -> tuple:
        return (self.sensor_prefix, self.alarm_prefix)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "version": self.version,
            "sensor_prefix": self.sensor_prefix,
            "alarm_prefix": self.alarm_prefix,
            "time_field": self.time_field,
            "value_field": self.value_field,
            "history_size": self.history_size,
            "retain_triggers_on_reset": self.retain_triggers_on_reset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoordinatorConfig":
        """Deserialize from dict."""
        return cls(
            version=data.get("version", 1),
            sensor_prefix=data.get("sensor_prefix", topics.SENSORS),
            alarm_prefix=data.get("alarm_prefix", topics.ALARMS),
            time_field=data.get("time_field", "time"),
            value_field=data.get("value_field", "temp"),
            history_size=data.get("history_size", 100),
            retain_triggers_on_reset=data.get("retain_triggers_on_reset", False),
        )
