"""
Device and trigger models.

Sensors and alarms are identified by (device_type, device_name). Triggers
bind one sensor's condition to a set of alarm targets.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Set
from uuid import uuid4

from home_sentry.core.topics import device_segment


# =============================================================================
# Devices
# =============================================================================


@dataclass(unsafe_hash=True)
class Sensor:
    """
    A reporting device and its latest reading.

    Equality and hashing use the identity only, so two Sensor instances with
    the same type and name are the same entity whatever their readings.

    Attributes:
        device_type: Sensor kind (e.g., "temperature")
        device_name: Sensor name (e.g., "kitchen")
        time: When the reading was taken (None until a reading arrives)
        value: Last reported value (None until a reading arrives)
    """

    device_type: str
    device_name: str
    time: Optional[datetime] = field(default=None, compare=False)
    value: Optional[float] = field(default=None, compare=False)

    def update(self, time: datetime, value: float) -> None:
        """Record a new reading."""
        self.time = time
        self.value = value

    @property
    def has_reading(self) -> bool:
        return self.value is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"device_type": self.device_type, "device_name": self.device_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sensor":
        return cls(device_type=data["device_type"], device_name=data["device_name"])


@dataclass(frozen=True)
class Alarm:
    """An actuator device that accepts severity commands."""

    device_type: str
    device_name: str

    @property
    def topic(self) -> str:
        """Device part of the alarm's topic, e.g. "/siren/frontdoor"."""
        return device_segment(self.device_type, self.device_name)

    def to_dict(self) -> Dict[str, Any]:
        return {"device_type": self.device_type, "device_name": self.device_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alarm":
        return cls(device_type=data["device_type"], device_name=data["device_name"])


class Severity(Enum):
    """Alarm command levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def level(self) -> str:
        """Command payload sent to alarm devices."""
        return self.value


# =============================================================================
# Conditions
# =============================================================================


class Condition(Protocol):
    """Anything that can decide whether a sensor value fires a trigger."""

    def matches(self, value: float) -> bool: ...


@dataclass(frozen=True)
class ThresholdCondition:
    """Fire when a value is outside the allowed range."""

    above: Optional[float] = None  # Value must be > this
    below: Optional[float] = None  # Value must be < this

    def matches(self, value: float) -> bool:
        if self.above is None and self.below is None:
            return False
        if self.above is not None and value <= self.above:
            return False
        if self.below is not None and value >= self.below:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "threshold", "above": self.above, "below": self.below}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThresholdCondition":
        condition_type = data.get("type", "threshold")
        if condition_type != "threshold":
            raise ValueError(f"Unknown condition type: {condition_type}")
        return cls(above=data.get("above"), below=data.get("below"))


# =============================================================================
# Trigger
# =============================================================================


def _new_trigger_id() -> str:
    return uuid4().hex


@dataclass(eq=False)
class Trigger:
    """
    A user-defined rule binding a sensor condition to alarm targets.

    Identity is the ``id``: ``triggered`` and ``alarms`` mutate while the
    trigger is registered, so neither takes part in equality or hashing.

    Attributes:
        sensor: Sensor this trigger watches (identity only)
        condition: Decides whether a reading fires the trigger
        severity: Level sent to the target alarms
        alarms: Explicit alarm targets (ignored when trigger_all is set)
        trigger_all: Target every known alarm instead of ``alarms``
        triggered: True once the trigger has fired
        id: Stable identifier
    """

    sensor: Sensor
    condition: Condition
    severity: Severity = Severity.HIGH
    alarms: Set[Alarm] = field(default_factory=set)
    trigger_all: bool = False
    triggered: bool = False
    id: str = field(default_factory=_new_trigger_id)

    def __post_init__(self) -> None:
        self.alarms = set(self.alarms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Trigger):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def is_triggered_by(self, sensor: Sensor) -> bool:
        """Check whether a sensor reading fires this trigger."""
        if sensor != self.sensor or not sensor.has_reading:
            return False
        return self.condition.matches(sensor.value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict for transport to UIs."""
        condition = self.condition
        return {
            "id": self.id,
            "sensor": self.sensor.to_dict(),
            "condition": condition.to_dict() if hasattr(condition, "to_dict") else None,
            "severity": self.severity.value,
            "alarms": [a.to_dict() for a in sorted(self.alarms, key=lambda a: a.topic)],
            "trigger_all": self.trigger_all,
            "triggered": self.triggered,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trigger":
        """Deserialize from dict."""
        kwargs: Dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(
            sensor=Sensor.from_dict(data["sensor"]),
            condition=ThresholdCondition.from_dict(data.get("condition") or {}),
            severity=Severity(data.get("severity", Severity.HIGH.value)),
            alarms={Alarm.from_dict(a) for a in data.get("alarms", [])},
            trigger_all=data.get("trigger_all", False),
            triggered=data.get("triggered", False),
            **kwargs,
        )
