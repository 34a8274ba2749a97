"""
DeviceRegistry for alarm presence and trigger definitions.

The registry owns the alarm/trigger membership, not the evaluation.
"""

import logging
import threading
from typing import FrozenSet, List, Set

from home_sentry.core.models import Alarm, Sensor, Trigger

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """
    In-memory sets of known alarms and registered triggers.

    Responsibilities:
    - Track which alarm devices are online
    - Store trigger definitions
    - Keep trigger alarm references consistent with alarm presence

    Every mutation and every snapshot read holds the same lock, so triggers
    can be added or removed from other threads while messages are evaluated.
    Read accessors return frozensets; callers cannot mutate registry state
    through them.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._alarms: Set[Alarm] = set()
        self._triggers: Set[Trigger] = set()
        self._lock = threading.RLock()

    # =========================================================================
    # Alarms
    # =========================================================================

    def add_alarm(self, alarm: Alarm) -> bool:
        """
        Mark an alarm as online.

        Args:
            alarm: The alarm that announced itself

        Returns:
            True if the alarm was not known before
        """
        with self._lock:
            if alarm in self._alarms:
                return False
            self._alarms.add(alarm)

        logger.info(f"Alarm online: {alarm.device_type}/{alarm.device_name}")
        return True

    def remove_alarm(self, alarm: Alarm) -> List[Trigger]:
        """
        Mark an alarm as offline and clean up triggers that targeted it.

        Triggers in "trigger all" mode are left alone. Any other trigger loses
        its reference to the alarm, and is removed once it has no alarms left.

        Args:
            alarm: The alarm that went offline

        Returns:
            Triggers removed because their last alarm went away
        """
        removed: List[Trigger] = []

        with self._lock:
            if alarm in self._alarms:
                self._alarms.discard(alarm)
                logger.info(f"Alarm offline: {alarm.device_type}/{alarm.device_name}")

            for trigger in list(self._triggers):
                if trigger.trigger_all or alarm not in trigger.alarms:
                    continue
                trigger.alarms.discard(alarm)
                if not trigger.alarms:
                    self._triggers.discard(trigger)
                    removed.append(trigger)

        for trigger in removed:
            logger.info(f"Removed trigger {trigger.id}: last alarm went offline")

        return removed

    def has_alarm(self, alarm: Alarm) -> bool:
        with self._lock:
            return alarm in self._alarms

    def all_alarms(self) -> FrozenSet[Alarm]:
        """
        Get a snapshot of all online alarms.

        Returns:
            Immutable set of alarms
        """
        with self._lock:
            return frozenset(self._alarms)

    # =========================================================================
    # Triggers
    # =========================================================================

    def add_trigger(self, trigger: Trigger) -> bool:
        """
        Register a trigger.

        A registered trigger only ever references alarms that are online, so
        a trigger naming an unknown alarm is rejected rather than registered
        without it. The trigger itself is left untouched.

        Args:
            trigger: The trigger to add

        Returns:
            True if the trigger was not registered before

        Raises:
            ValueError: If the trigger targets explicit alarms and has none,
                or any of them is not online
        """
        with self._lock:
            if trigger in self._triggers:
                return False

            if not trigger.trigger_all:
                if not trigger.alarms:
                    raise ValueError(f"Trigger {trigger.id} targets no alarms")
                unknown = trigger.alarms - self._alarms
                if unknown:
                    raise ValueError(
                        f"Trigger {trigger.id} targets alarms that are not online: "
                        f"{sorted(a.topic for a in unknown)}"
                    )

            self._triggers.add(trigger)

        logger.info(
            f"Added trigger {trigger.id} on "
            f"{trigger.sensor.device_type}/{trigger.sensor.device_name}"
        )
        return True

    def remove_trigger(self, trigger: Trigger) -> bool:
        """
        Unregister a trigger.

        Args:
            trigger: The trigger to remove

        Returns:
            True if the trigger was registered
        """
        with self._lock:
            if trigger not in self._triggers:
                return False
            self._triggers.discard(trigger)

        logger.info(f"Removed trigger {trigger.id}")
        return True

    def triggers_for_sensor(self, sensor: Sensor) -> FrozenSet[Trigger]:
        """
        Get the triggers watching a sensor.

        Args:
            sensor: Sensor identity to look up

        Returns:
            Immutable set of matching triggers
        """
        with self._lock:
            return frozenset(t for t in self._triggers if t.sensor == sensor)

    def all_triggers(self) -> FrozenSet[Trigger]:
        """
        Get a snapshot of all registered triggers.

        Returns:
            Immutable set of triggers
        """
        with self._lock:
            return frozenset(self._triggers)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def clear(self, keep_triggers: bool = False) -> None:
        """
        Drop registry state.

        Args:
            keep_triggers: Keep trigger definitions and only forget alarms
        """
        with self._lock:
            alarm_count = len(self._alarms)
            self._alarms.clear()
            trigger_count = 0
            if not keep_triggers:
                trigger_count = len(self._triggers)
                self._triggers.clear()

        logger.info(f"Registry cleared: {alarm_count} alarms, {trigger_count} triggers dropped")

    @property
    def lock(self) -> threading.RLock:
        """The registry lock, for callers that need a consistent multi-step read."""
        return self._lock
