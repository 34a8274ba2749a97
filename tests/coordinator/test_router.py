"""Tests for the message router."""

from unittest.mock import Mock

import pytest

from home_sentry.coordinator import (
    CoordinatorConfig,
    MessageRouter,
    MockBusGateway,
    RouteOutcome,
    TriggerEvaluator,
)
from home_sentry.core.bus import EventNotifier, SensorOffline, SensorUpdated
from home_sentry.core.models import Alarm, Sensor, ThresholdCondition, Trigger
from home_sentry.core.registry import DeviceRegistry

SIREN = Alarm("siren", "frontdoor")


@pytest.fixture
def gateway():
    return MockBusGateway()


@pytest.fixture
def registry():
    return DeviceRegistry()


@pytest.fixture
def notifier():
    return EventNotifier()


@pytest.fixture
def events(notifier):
    received = []
    notifier.register(received.append)
    return received


@pytest.fixture
def evaluator(registry, notifier, gateway):
    return TriggerEvaluator(registry, notifier, gateway)


@pytest.fixture
def router(registry, notifier, evaluator):
    return MessageRouter(registry, notifier, evaluator)


class TestSensorPath:
    """Tests for sensor messages."""

    def test_sensor_update(self, router, events):
        result = router.route("sensors/temperature/kitchen", b"time=1000,temp=21.5")

        assert result.outcome == RouteOutcome.SENSOR_UPDATED
        assert len(events) == 1
        assert isinstance(events[0], SensorUpdated)
        assert events[0].sensor == Sensor("temperature", "kitchen")
        assert events[0].sensor.value == 21.5

    def test_sensor_offline(self, router, events, registry):
        registry.add_alarm(SIREN)
        trigger = Trigger(
            sensor=Sensor("temperature", "kitchen"),
            condition=ThresholdCondition(above=-100),
            alarms={SIREN},
        )
        registry.add_trigger(trigger)

        result = router.route("sensors/temperature/kitchen", b"offline")

        assert result.outcome == RouteOutcome.SENSOR_OFFLINE
        assert result.evaluation is None
        assert len(events) == 1
        assert isinstance(events[0], SensorOffline)
        assert events[0].sensor.value is None
        assert trigger.triggered is False

    def test_malformed_payload_dropped(self, router, events, gateway):
        result = router.route("sensors/temperature/kitchen", b"time=1000,temp=warm")

        assert result.outcome == RouteOutcome.DROPPED
        assert "temp" in result.error
        assert events == []
        assert gateway.get_published() == []

    def test_malformed_sensor_topic_dropped(self, router, events):
        result = router.route("sensors/temperature", b"time=1000,temp=21.5")

        assert result.outcome == RouteOutcome.DROPPED
        assert events == []

    @pytest.mark.parametrize(
        "topic, name",
        [
            ("sensors/temperature/living-room", "living-room"),
            ("sensors/temperature/kitchen/probe1", "kitchen"),
        ],
    )
    def test_loose_sensor_topics_accepted(self, router, events, topic, name):
        """Test that sensor topics only need a type and a name segment."""
        result = router.route(topic, b"time=1000,temp=21.5")

        assert result.outcome == RouteOutcome.SENSOR_UPDATED
        assert len(events) == 1
        assert events[0].sensor == Sensor("temperature", name)

    def test_deep_sensor_topic_fires_trigger(self, router, registry, gateway):
        registry.add_alarm(SIREN)
        trigger = Trigger(
            sensor=Sensor("temperature", "kitchen"),
            condition=ThresholdCondition(above=25),
            alarms={SIREN},
        )
        registry.add_trigger(trigger)

        router.route("sensors/temperature/kitchen/probe1", b"time=1000,temp=30")

        assert trigger.triggered is True
        assert [m.topic for m in gateway.get_published()] == ["alarms/siren/frontdoor"]

    def test_processing_continues_after_drop(self, router, events):
        router.route("sensors/temperature/kitchen", b"nonsense")
        router.route("sensors/temperature/kitchen", b"time=1000,temp=21.5")

        assert len(events) == 1

    def test_evaluation_result_attached(self, router):
        result = router.route("sensors/temperature/kitchen", b"time=1000,temp=21.5")

        assert result.evaluation is not None
        assert result.evaluation.triggers_evaluated == 0


class TestAlarmPath:
    """Tests for alarm presence messages."""

    def test_alarm_online(self, router, registry):
        result = router.route("alarms/siren/frontdoor", b"online")

        assert result.outcome == RouteOutcome.ALARM_ONLINE
        assert registry.all_alarms() == frozenset({SIREN})

    def test_alarm_offline(self, router, registry):
        router.route("alarms/siren/frontdoor", b"online")
        result = router.route("alarms/siren/frontdoor", b"offline")

        assert result.outcome == RouteOutcome.ALARM_OFFLINE
        assert registry.all_alarms() == frozenset()

    def test_offline_cascades_into_triggers(self, router, registry):
        router.route("alarms/siren/frontdoor", b"online")
        trigger = Trigger(
            sensor=Sensor("temperature", "kitchen"),
            condition=ThresholdCondition(above=25),
            alarms={SIREN},
        )
        registry.add_trigger(trigger)

        router.route("alarms/siren/frontdoor", b"offline")

        assert trigger not in registry.all_triggers()

    def test_discovery_topic_ignored(self, router, registry):
        result = router.route("alarms", b"hello")

        assert result.outcome == RouteOutcome.IGNORED
        assert registry.all_alarms() == frozenset()

    def test_discovery_topic_with_online_ignored(self, router, registry):
        """Test that only device topics change presence."""
        router.route("alarms", b"online")
        router.route("alarms/siren", b"online")
        router.route("alarms/siren/frontdoor/extra", b"online")
        router.route("alarms/siren/front-door", b"online")

        assert registry.all_alarms() == frozenset()

    def test_alarm_result_carries_alarm(self, router):
        assert router.route("alarms/siren/frontdoor", b"online").alarm == SIREN
        assert router.route("alarms/siren/frontdoor", b"offline").alarm == SIREN

    def test_command_echo_ignored(self, router, registry):
        router.route("alarms/siren/frontdoor", b"online")
        result = router.route("alarms/siren/frontdoor", b"high")

        assert result.outcome == RouteOutcome.IGNORED
        assert registry.all_alarms() == frozenset({SIREN})

    def test_alarm_online_idempotent(self, router, registry):
        router.route("alarms/siren/frontdoor", b"online")
        router.route("alarms/siren/frontdoor", b"online")

        assert registry.all_alarms() == frozenset({SIREN})


class TestRoutingPartition:
    """Tests that each message reaches exactly one handler."""

    @pytest.fixture
    def spied(self, router, monkeypatch):
        sensor_handler = Mock(wraps=router._handle_sensor_message)
        alarm_handler = Mock(wraps=router._handle_alarm_message)
        monkeypatch.setattr(router, "_handle_sensor_message", sensor_handler)
        monkeypatch.setattr(router, "_handle_alarm_message", alarm_handler)
        return router, sensor_handler, alarm_handler

    @pytest.mark.parametrize(
        "topic",
        ["sensors/temperature/kitchen", "sensors/temperature", "sensors"],
    )
    def test_sensor_topics(self, spied, topic):
        router, sensor_handler, alarm_handler = spied

        router.route(topic, b"time=1000,temp=21.5")

        assert sensor_handler.call_count == 1
        assert alarm_handler.call_count == 0

    @pytest.mark.parametrize(
        "topic",
        ["alarms/siren/frontdoor", "alarms/siren", "alarms"],
    )
    def test_alarm_topics(self, spied, topic):
        router, sensor_handler, alarm_handler = spied

        router.route(topic, b"online")

        assert sensor_handler.call_count == 0
        assert alarm_handler.call_count == 1

    @pytest.mark.parametrize(
        "topic",
        ["lights/kitchen/main", "sensorsX/temperature/kitchen", "alarmsystem"],
    )
    def test_foreign_topics(self, spied, topic):
        router, sensor_handler, alarm_handler = spied

        result = router.route(topic, b"online")

        assert result.outcome == RouteOutcome.IGNORED
        assert sensor_handler.call_count == 0
        assert alarm_handler.call_count == 0


class TestCustomConfig:
    """Tests for non-default namespace settings."""

    def test_custom_prefixes_and_fields(self, registry, notifier, gateway, events):
        config = CoordinatorConfig(
            sensor_prefix="probes",
            alarm_prefix="sirens",
            value_field="humidity",
        )
        evaluator = TriggerEvaluator(registry, notifier, gateway, alarm_prefix=config.alarm_prefix)
        router = MessageRouter(registry, notifier, evaluator, config=config)

        router.route("probes/humidity/bathroom", b"time=1000,humidity=80")
        router.route("sirens/bell/garden", b"online")
        router.route("sensors/temperature/kitchen", b"time=1000,temp=21.5")

        assert len(events) == 1
        assert events[0].sensor.value == 80.0
        assert registry.all_alarms() == frozenset({Alarm("bell", "garden")})

    def test_custom_prefix_commands_published_under_it(self, registry, notifier, gateway):
        config = CoordinatorConfig(sensor_prefix="probes", alarm_prefix="sirens")
        evaluator = TriggerEvaluator(registry, notifier, gateway, alarm_prefix=config.alarm_prefix)
        router = MessageRouter(registry, notifier, evaluator, config=config)
        router.route("sirens/bell/garden", b"online")
        registry.add_trigger(
            Trigger(
                sensor=Sensor("temperature", "kitchen"),
                condition=ThresholdCondition(above=25),
                alarms={Alarm("bell", "garden")},
            )
        )

        router.route("probes/temperature/kitchen", b"time=1000,temp=30")

        assert [m.topic for m in gateway.get_published()] == ["sirens/bell/garden"]

    def test_mismatched_evaluator_prefix_rejected(self, registry, notifier, evaluator):
        """Test that router and evaluator must agree on the alarm prefix."""
        config = CoordinatorConfig(alarm_prefix="sirens")

        with pytest.raises(ValueError):
            MessageRouter(registry, notifier, evaluator, config=config)
