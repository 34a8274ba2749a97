"""
Core components of the home-sentry coordinator.

This package contains:
- topics: Topic codec for the sensor/alarm namespace
- models: Sensor, Alarm, Severity and Trigger
- registry: DeviceRegistry for alarm presence and triggers
- bus: Event Notifier and the sensor domain events
- exceptions: Error hierarchy
"""

from home_sentry.core.exceptions import (
    SentryError,
    MalformedTopic,
    MalformedPayload,
    TransportFault,
)
from home_sentry.core.models import (
    Sensor,
    Alarm,
    Severity,
    Condition,
    ThresholdCondition,
    Trigger,
)
from home_sentry.core.registry import DeviceRegistry
from home_sentry.core.bus import (
    EventFilter,
    EventNotifier,
    SensorEvent,
    SensorOffline,
    SensorTriggered,
    SensorUpdated,
)

__all__ = [
    "SentryError",
    "MalformedTopic",
    "MalformedPayload",
    "TransportFault",
    "Sensor",
    "Alarm",
    "Severity",
    "Condition",
    "ThresholdCondition",
    "Trigger",
    "DeviceRegistry",
    "EventFilter",
    "EventNotifier",
    "SensorEvent",
    "SensorOffline",
    "SensorTriggered",
    "SensorUpdated",
]
