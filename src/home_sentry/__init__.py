"""
home-sentry: sensor/alarm coordinator for a home-automation bus.

This library provides the central coordinator of the network:
- Topic codec for the sensors/alarms namespace
- Alarm discovery and presence tracking
- Threshold triggers that command alarm devices
- Synchronous event notifications for UIs
"""

from home_sentry.core.models import Sensor, Alarm, Severity, ThresholdCondition, Trigger
from home_sentry.core.bus import (
    EventFilter,
    EventNotifier,
    SensorOffline,
    SensorTriggered,
    SensorUpdated,
)
from home_sentry.core.registry import DeviceRegistry
from home_sentry.coordinator import Coordinator, CoordinatorConfig, BusGateway, MockBusGateway

__version__ = "0.1.0-alpha"

__all__ = [
    "Sensor",
    "Alarm",
    "Severity",
    "ThresholdCondition",
    "Trigger",
    "EventFilter",
    "EventNotifier",
    "SensorOffline",
    "SensorTriggered",
    "SensorUpdated",
    "DeviceRegistry",
    "Coordinator",
    "CoordinatorConfig",
    "BusGateway",
    "MockBusGateway",
]
