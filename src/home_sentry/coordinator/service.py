"""
Coordinator implementation.

Wires the registry, notifier, evaluator and router together behind one
explicitly constructed object that the process entry point owns.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, List, Optional

from home_sentry.core import topics
from home_sentry.core.bus import EventFilter, EventHandler, EventNotifier
from home_sentry.core.exceptions import TransportFault
from home_sentry.core.models import Alarm, Sensor, Trigger
from home_sentry.core.registry import DeviceRegistry

from .config import CoordinatorConfig
from .evaluator import TriggerEvaluator
from .router import MessageRouter, RouteOutcome, RouteResult

if TYPE_CHECKING:
    from .adapter import BusGateway
    from .payloads import PayloadParser

logger = logging.getLogger(__name__)

# Called with (alarm, online) when an alarm announces or withdraws itself
AlarmHandler = Callable[[Alarm, bool], None]


class Coordinator:
    """
    Central coordinator for sensors, alarms and triggers.

    Lifecycle:
    - start(): subscribe to the namespace and run the discovery handshake
    - on_message(): gateway callback for every inbound message
    - on_connection_lost(): gateway callback, resets session state
    - stop(): ignore further traffic

    External callers (e.g. a UI) register listeners and manage triggers
    through the public API below.
    """

    def __init__(
        self,
        gateway: "BusGateway",
        config: Optional[CoordinatorConfig] = None,
        parser: Optional["PayloadParser"] = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            gateway: Bus gateway used to subscribe and publish
            config: Coordinator settings (defaults if omitted)
            parser: Sensor payload parser (key=value parser if omitted)
        """
        self._gateway = gateway
        self._config = config or CoordinatorConfig()
        self._registry = DeviceRegistry()
        self._notifier = EventNotifier()
        self._evaluator = TriggerEvaluator(
            self._registry,
            self._notifier,
            gateway,
            alarm_prefix=self._config.alarm_prefix,
            history_size=self._config.history_size,
        )
        self._router = MessageRouter(
            self._registry,
            self._notifier,
            self._evaluator,
            config=self._config,
            parser=parser,
        )
        self._running = False
        self._alarm_listeners: List[AlarmHandler] = []
        self._alarm_listeners_lock = threading.Lock()

    @property
    def config(self) -> CoordinatorConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Subscribe to sensor and alarm topics and announce ourselves.

        The hello on the bare alarm topic prompts alarms that are already
        online to announce themselves again. Calling start() again after a
        reconnect repeats the handshake.
        """
        self._gateway.subscribe(topics.wildcard(self._config.alarm_prefix))
        self._gateway.subscribe(topics.wildcard(self._config.sensor_prefix))
        self._gateway.publish(self._config.alarm_prefix, topics.HELLO.encode())

        if not self._running:
            logger.info("Coordinator started")
        self._running = True

    def stop(self) -> None:
        """Stop processing inbound messages."""
        if self._running:
            logger.info("Coordinator stopped")
        self._running = False
        self._alarm_listeners: List[AlarmHandler] = []
        self._alarm_listeners_lock = threading.Lock()

    def reset(self) -> None:
        """
        Drop all session state.

        Alarms are always forgotten. Triggers are forgotten too unless
        ``retain_triggers_on_reset`` is set.
        """
        keep = self._config.retain_triggers_on_reset
        self._registry.clear(keep_triggers=keep)
        self._evaluator.clear_history()
        logger.info(f"Coordinator reset (triggers {'kept' if keep else 'cleared'})")

    # =========================================================================
    # Gateway callbacks
    # =========================================================================

    def on_message(self, topic: str, payload: bytes) -> RouteResult:
        """
        Handle one inbound message.

        Alarm listeners are told about presence changes once the message has
        been routed, so they may add triggers for the alarm right away.

        Args:
            topic: Message topic
            payload: Raw message body

        Returns:
            What the router did with the message
        """
        if not self._running:
            logger.debug(f"Not running, ignoring message on {topic}")
            return RouteResult(RouteOutcome.IGNORED, topic)

        result = self._router.route(topic, payload)
        if result.alarm is not None:
            self._notify_alarm_listeners(result.alarm, result.outcome == RouteOutcome.ALARM_ONLINE)
        return result

    def on_connection_lost(self, cause: BaseException) -> None:
        """
        Handle loss of the bus connection.

        Every discovered alarm is presumed stale. The gateway calls start()
        again once it has reconnected.

        Args:
            cause: Transport error reported by the gateway
        """
        fault = cause if isinstance(cause, TransportFault) else TransportFault(cause)
        logger.error(f"Lost connection: {fault.cause}", exc_info=fault.cause)
        self.reset()

    # =========================================================================
    # Listeners
    # =========================================================================

    def register_listener(
        self,
        handler: EventHandler,
        event_filter: Optional[EventFilter] = None,
    ) -> None:
        """
        Register a listener for sensor events.

        Args:
            handler: Callable receiving SensorUpdated/SensorOffline/SensorTriggered
            event_filter: Optional filter by event type
        """
        self._notifier.register(handler, event_filter)

    def unregister_listener(self, handler: EventHandler) -> None:
        """Unregister a listener."""
        self._notifier.unregister(handler)

    def register_alarm_listener(self, handler: AlarmHandler) -> None:
        """
        Register a listener for alarm presence changes.

        Args:
            handler: Callable receiving (alarm, online)
        """
        with self._alarm_listeners_lock:
            self._alarm_listeners.append(handler)

    def unregister_alarm_listener(self, handler: AlarmHandler) -> None:
        """Unregister an alarm listener."""
        with self._alarm_listeners_lock:
            self._alarm_listeners = [h for h in self._alarm_listeners if h != handler]

    def _notify_alarm_listeners(self, alarm: Alarm, online: bool) -> None:
        with self._alarm_listeners_lock:
            handlers = list(self._alarm_listeners)

        for handler in handlers:
            try:
                handler(alarm, online)
            except Exception as e:
                logger.error(
                    f"Error in alarm listener for {alarm.device_type}/{alarm.device_name}: {e}",
                    exc_info=True,
                )

    # =========================================================================
    # Public API
    # =========================================================================

    def add_trigger(self, trigger: Trigger) -> bool:
        """
        Add a trigger.

        Args:
            trigger: The trigger to add

        Returns:
            True if the trigger was not registered before
        """
        return self._registry.add_trigger(trigger)

    def remove_trigger(self, trigger: Trigger) -> bool:
        """
        Remove a trigger.

        Args:
            trigger: The trigger to remove

        Returns:
            True if the trigger was registered
        """
        return self._registry.remove_trigger(trigger)

    def triggers_for_sensor(self, sensor: Sensor) -> FrozenSet[Trigger]:
        """Get the triggers watching a sensor."""
        return self._registry.triggers_for_sensor(sensor)

    def all_triggers(self) -> FrozenSet[Trigger]:
        """Get all registered triggers."""
        return self._registry.all_triggers()

    def all_alarms(self) -> FrozenSet[Alarm]:
        """Get all online alarms."""
        return self._registry.all_alarms()

    def get_history(
        self,
        trigger_id: Optional[str] = None,
        limit: int = 20,
    ) -> List[Dict[str, Any]]:
        """
        Get trigger firing history.

        Args:
            trigger_id: Filter by trigger (optional)
            limit: Maximum entries to return

        Returns:
            List of firing records, newest first
        """
        history = self._evaluator.get_history(trigger_id, limit)
        return [
            {
                "trigger_id": h.trigger_id,
                "sensor_type": h.sensor_type,
                "sensor_name": h.sensor_name,
                "value": h.value,
                "severity": h.severity,
                "alarm_topics": h.alarm_topics,
                "timestamp": h.timestamp.isoformat(),
            }
            for h in history
        ]
