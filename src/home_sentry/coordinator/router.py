"""
Message router - entry point for inbound bus messages.

Classifies each message by its category prefix and hands it to exactly one
of the sensor or alarm handlers.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from home_sentry.core import topics
from home_sentry.core.bus import EventNotifier, SensorOffline, SensorUpdated
from home_sentry.core.exceptions import MalformedPayload, MalformedTopic
from home_sentry.core.models import Alarm, Sensor
from home_sentry.core.registry import DeviceRegistry

from .config import CoordinatorConfig
from .evaluator import EvaluationResult, TriggerEvaluator
from .payloads import KeyValuePayloadParser, PayloadParser

logger = logging.getLogger(__name__)


class RouteOutcome(Enum):
    """What happened to an inbound message."""

    SENSOR_UPDATED = "sensor_updated"
    SENSOR_OFFLINE = "sensor_offline"
    ALARM_ONLINE = "alarm_online"
    ALARM_OFFLINE = "alarm_offline"
    IGNORED = "ignored"  # Outside the namespace, discovery topic, command echo
    DROPPED = "dropped"  # Malformed topic or payload


@dataclass
class RouteResult:
    """Result of routing one inbound message."""

    outcome: RouteOutcome
    topic: str
    evaluation: Optional[EvaluationResult] = None
    alarm: Optional[Alarm] = None  # Set for alarm presence changes
    error: Optional[str] = None


class MessageRouter:
    """
    Routes inbound messages to the sensor or alarm path.

    Messages are processed one at a time, in delivery order: a trigger's
    ``triggered`` flag and its alarm commands are never interleaved with
    another message's evaluation.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        notifier: EventNotifier,
        evaluator: TriggerEvaluator,
        config: Optional[CoordinatorConfig] = None,
        parser: Optional[PayloadParser] = None,
    ) -> None:
        self._config = config or CoordinatorConfig()
        if evaluator.alarm_prefix != self._config.alarm_prefix:
            raise ValueError(
                f"Evaluator publishes under '{evaluator.alarm_prefix}' but the router "
                f"expects alarms under '{self._config.alarm_prefix}'"
            )
        self._registry = registry
        self._notifier = notifier
        self._evaluator = evaluator
        self._parser = parser or KeyValuePayloadParser(
            time_field=self._config.time_field,
            value_field=self._config.value_field,
        )
        self._lock = threading.Lock()

    def route(self, topic: str, payload: bytes) -> RouteResult:
        """
        Route one inbound message.

        Malformed messages are logged and dropped; nothing raised here
        reaches the transport.

        Args:
            topic: Message topic
            payload: Raw message body

        Returns:
            What the router did with the message
        """
        text = payload.decode("utf-8", errors="replace")
        category = topics.category_of(topic, self._config.categories)

        with self._lock:
            try:
                if category == self._config.sensor_prefix:
                    return self._handle_sensor_message(topic, text)
                if category == self._config.alarm_prefix:
                    return self._handle_alarm_message(topic, text)
            except (MalformedTopic, MalformedPayload) as e:
                logger.warning(f"Dropping message: {e}")
                return RouteResult(RouteOutcome.DROPPED, topic, error=str(e))

        logger.debug(f"Ignoring message outside namespace: {topic}")
        return RouteResult(RouteOutcome.IGNORED, topic)

    # =========================================================================
    # Sensor path
    # =========================================================================

    def _handle_sensor_message(self, topic: str, text: str) -> RouteResult:
        device = topics.decode(topic, self._config.categories)
        sensor = Sensor(device.device_type, device.device_name)

        if topics.OFFLINE in text:
            logger.debug(f"Sensor offline: {topic}")
            self._notifier.post(SensorOffline(sensor))
            return RouteResult(RouteOutcome.SENSOR_OFFLINE, topic)

        reading = self._parser.parse(text)
        sensor.update(reading.time, reading.value)

        self._notifier.post(SensorUpdated(sensor))

        evaluation = self._evaluator.evaluate(sensor)
        return RouteResult(RouteOutcome.SENSOR_UPDATED, topic, evaluation=evaluation)

    # =========================================================================
    # Alarm path
    # =========================================================================

    def _handle_alarm_message(self, topic: str, text: str) -> RouteResult:
        # Only presence announcements on exact device topics change state;
        # the bare discovery topic, deeper topics and command echoes fall
        # through.
        if not topics.is_device_topic(topic, self._config.alarm_prefix):
            logger.debug(f"Ignoring non-device alarm topic: {topic}")
            return RouteResult(RouteOutcome.IGNORED, topic)

        device = topics.decode(topic, self._config.categories)
        alarm = Alarm(device.device_type, device.device_name)

        if topics.ONLINE in text:
            self._registry.add_alarm(alarm)
            return RouteResult(RouteOutcome.ALARM_ONLINE, topic, alarm=alarm)

        if topics.OFFLINE in text:
            self._registry.remove_alarm(alarm)
            return RouteResult(RouteOutcome.ALARM_OFFLINE, topic, alarm=alarm)

        return RouteResult(RouteOutcome.IGNORED, topic)
