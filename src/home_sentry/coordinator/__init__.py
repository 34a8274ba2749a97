"""
Coordinator for home-sentry.

Listens to sensor readings and alarm announcements on the bus, evaluates
triggers and sends alarm commands.

Features:
- Strict topic routing (sensor path vs. alarm path)
- Alarm discovery via the hello handshake
- Threshold triggers targeting selected alarms or every alarm
- Offline cascade (a trigger goes away with its last alarm)
- Firing history for debugging

Architecture:

    gateway ──on_message──▶ MessageRouter ──▶ TriggerEvaluator ──publish──▶ gateway
                                 │                   │
                                 ▼                   ▼
                           DeviceRegistry      EventNotifier ──▶ listeners
"""

from .adapter import BusGateway, MockBusGateway, OutboundMessage
from .config import CoordinatorConfig
from .evaluator import EvaluationResult, TriggerEvaluator, TriggerFiring
from .payloads import KeyValuePayloadParser, PayloadParser, SensorReading
from .router import MessageRouter, RouteOutcome, RouteResult
from .service import Coordinator

__all__ = [
    # Main service
    "Coordinator",
    "CoordinatorConfig",
    # Gateway
    "BusGateway",
    "MockBusGateway",
    "OutboundMessage",
    # Engine
    "MessageRouter",
    "RouteOutcome",
    "RouteResult",
    "TriggerEvaluator",
    "EvaluationResult",
    "TriggerFiring",
    # Payloads
    "PayloadParser",
    "KeyValuePayloadParser",
    "SensorReading",
]
