"""
Trigger evaluator - decides which triggers a reading fires.

Handles trigger matching, alarm target resolution and command dispatch.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Deque, FrozenSet, List, Optional

from home_sentry.core import topics
from home_sentry.core.bus import EventNotifier, SensorTriggered
from home_sentry.core.models import Alarm, Sensor, Trigger
from home_sentry.core.registry import DeviceRegistry

from .adapter import BusGateway

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Result of evaluating one sensor reading."""

    triggers_evaluated: int = 0
    triggers_fired: int = 0
    commands_sent: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class TriggerFiring:
    """Record of a fired trigger (for history/debugging)."""

    trigger_id: str
    sensor_type: str
    sensor_name: str
    value: Optional[float]
    severity: str
    alarm_topics: List[str]
    timestamp: datetime


class TriggerEvaluator:
    """
    Core engine for trigger processing.

    Responsibilities:
    - Match a sensor reading against the triggers registered for it
    - Mark fired triggers and announce them on the notifier
    - Resolve alarm targets and send one command per alarm
    - Track firing history
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        notifier: EventNotifier,
        gateway: BusGateway,
        alarm_prefix: str = topics.ALARMS,
        history_size: int = 100,
    ) -> None:
        self._registry = registry
        self._notifier = notifier
        self._gateway = gateway
        self._alarm_prefix = alarm_prefix
        self._history: Deque[TriggerFiring] = deque(maxlen=history_size)

    @property
    def alarm_prefix(self) -> str:
        return self._alarm_prefix

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate(self, sensor: Sensor, now: Optional[datetime] = None) -> EvaluationResult:
        """
        Evaluate a sensor reading against its triggers.

        Args:
            sensor: Sensor carrying the new reading
            now: Current time (for testing)

        Returns:
            Result with counts of triggers evaluated/fired
        """
        if now is None:
            now = datetime.now(UTC)

        result = EvaluationResult()

        for trigger in self._registry.triggers_for_sensor(sensor):
            result.triggers_evaluated += 1

            if not trigger.is_triggered_by(sensor):
                continue

            result.triggers_fired += 1
            result.commands_sent += self._fire(sensor, trigger, now, result)

        if result.triggers_fired:
            logger.info(
                f"Reading {sensor.value} from {sensor.device_type}/{sensor.device_name}: "
                f"{result.triggers_fired}/{result.triggers_evaluated} triggers fired, "
                f"{result.commands_sent} commands sent"
            )

        return result

    def targets_for(self, trigger: Trigger) -> FrozenSet[Alarm]:
        """
        Resolve the alarms a trigger should command.

        Args:
            trigger: The fired trigger

        Returns:
            Every online alarm for "trigger all" triggers, else the trigger's own set
        """
        with self._registry.lock:
            if trigger.trigger_all:
                return self._registry.all_alarms()
            return frozenset(trigger.alarms)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _fire(
        self,
        sensor: Sensor,
        trigger: Trigger,
        now: datetime,
        result: EvaluationResult,
    ) -> int:
        """
        Fire a trigger.

        Returns:
            Number of alarm commands sent
        """
        trigger.triggered = True

        self._notifier.post(SensorTriggered(sensor, trigger))

        sent = []
        for alarm in self.targets_for(trigger):
            topic = self._alarm_prefix + alarm.topic
            try:
                self._send_alarm(topic, trigger)
            except Exception as e:
                result.errors.append(f"{topic}: {e}")
                logger.error(f"Failed to send alarm command to {topic}: {e}", exc_info=True)
                continue
            sent.append(topic)

        self._history.append(
            TriggerFiring(
                trigger_id=trigger.id,
                sensor_type=sensor.device_type,
                sensor_name=sensor.device_name,
                value=sensor.value,
                severity=trigger.severity.level,
                alarm_topics=sorted(sent),
                timestamp=now,
            )
        )

        return len(sent)

    def _send_alarm(self, topic: str, trigger: Trigger) -> None:
        """Publish one alarm command, at most once and unretained."""
        logger.debug(f"Sending {trigger.severity.level} to {topic}")
        self._gateway.publish(
            topic,
            trigger.severity.level.encode(),
            qos=0,
            retained=False,
        )

    # =========================================================================
    # History
    # =========================================================================

    def get_history(
        self,
        trigger_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[TriggerFiring]:
        """
        Get firing history.

        Args:
            trigger_id: Filter by trigger (optional)
            limit: Maximum entries to return

        Returns:
            List of TriggerFiring records (newest first)
        """
        result = []
        for firing in reversed(self._history):
            if trigger_id and firing.trigger_id != trigger_id:
                continue
            result.append(firing)
            if len(result) >= limit:
                break
        return result

    def clear_history(self) -> None:
        self._history.clear()
