"""Tests for device and trigger models."""

from datetime import datetime, UTC

import pytest

from home_sentry.core.models import (
    Alarm,
    Sensor,
    Severity,
    ThresholdCondition,
    Trigger,
)


class TestSensor:
    """Tests for Sensor identity."""

    def test_equality_ignores_reading(self):
        """Test two sensors with the same identity are equal regardless of value."""
        a = Sensor("temperature", "kitchen")
        b = Sensor("temperature", "kitchen")
        b.update(datetime(2025, 1, 1, tzinfo=UTC), 30.0)

        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_different_identity(self):
        assert Sensor("temperature", "kitchen") != Sensor("temperature", "garage")
        assert Sensor("temperature", "kitchen") != Sensor("humidity", "kitchen")

    def test_update(self):
        sensor = Sensor("temperature", "kitchen")
        assert not sensor.has_reading

        when = datetime(2025, 1, 1, tzinfo=UTC)
        sensor.update(when, 21.5)

        assert sensor.has_reading
        assert sensor.time == when
        assert sensor.value == 21.5


class TestAlarm:
    """Tests for Alarm."""

    def test_topic_segment(self):
        assert Alarm("siren", "frontdoor").topic == "/siren/frontdoor"

    def test_alarm_is_hashable_value(self):
        assert Alarm("siren", "frontdoor") == Alarm("siren", "frontdoor")
        assert len({Alarm("siren", "frontdoor"), Alarm("siren", "frontdoor")}) == 1


class TestSeverity:
    def test_level_is_payload_string(self):
        assert Severity.HIGH.level == "high"
        assert Severity("critical") is Severity.CRITICAL


class TestThresholdCondition:
    """Tests for threshold comparisons."""

    def test_above(self):
        condition = ThresholdCondition(above=25)

        assert condition.matches(30.0)
        assert not condition.matches(25.0)
        assert not condition.matches(20.0)

    def test_below(self):
        condition = ThresholdCondition(below=5)

        assert condition.matches(2.0)
        assert not condition.matches(5.0)

    def test_band(self):
        condition = ThresholdCondition(above=10, below=20)

        assert condition.matches(15.0)
        assert not condition.matches(25.0)

    def test_no_bounds_never_matches(self):
        assert not ThresholdCondition().matches(100.0)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            ThresholdCondition.from_dict({"type": "equals"})


class TestTrigger:
    """Tests for Trigger identity and matching."""

    @pytest.fixture
    def trigger(self):
        return Trigger(
            sensor=Sensor("temperature", "kitchen"),
            condition=ThresholdCondition(above=25),
            severity=Severity.HIGH,
            alarms={Alarm("siren", "frontdoor")},
        )

    def test_identity_stable_when_triggered(self, trigger):
        """Test that flipping the triggered flag keeps the trigger findable in a set."""
        triggers = {trigger}
        trigger.triggered = True
        trigger.alarms.clear()

        assert trigger in triggers

    def test_distinct_ids(self, trigger):
        other = Trigger(
            sensor=trigger.sensor,
            condition=trigger.condition,
            alarms=set(trigger.alarms),
        )
        assert other != trigger

    def test_is_triggered_by(self, trigger):
        sensor = Sensor("temperature", "kitchen")
        sensor.update(datetime.now(UTC), 30.0)

        assert trigger.is_triggered_by(sensor)

    def test_not_triggered_below_threshold(self, trigger):
        sensor = Sensor("temperature", "kitchen")
        sensor.update(datetime.now(UTC), 21.0)

        assert not trigger.is_triggered_by(sensor)

    def test_not_triggered_by_other_sensor(self, trigger):
        sensor = Sensor("temperature", "garage")
        sensor.update(datetime.now(UTC), 30.0)

        assert not trigger.is_triggered_by(sensor)

    def test_not_triggered_without_reading(self, trigger):
        assert not trigger.is_triggered_by(Sensor("temperature", "kitchen"))

    def test_serialize(self, trigger):
        data = trigger.to_dict()

        assert data["id"] == trigger.id
        assert data["sensor"] == {"device_type": "temperature", "device_name": "kitchen"}
        assert data["condition"] == {"type": "threshold", "above": 25, "below": None}
        assert data["severity"] == "high"
        assert data["alarms"] == [{"device_type": "siren", "device_name": "frontdoor"}]
        assert data["trigger_all"] is False

    def test_deserialize(self):
        data = {
            "id": "t1",
            "sensor": {"device_type": "temperature", "device_name": "kitchen"},
            "condition": {"type": "threshold", "below": 5},
            "severity": "low",
            "trigger_all": True,
        }

        trigger = Trigger.from_dict(data)

        assert trigger.id == "t1"
        assert trigger.sensor == Sensor("temperature", "kitchen")
        assert trigger.condition == ThresholdCondition(below=5)
        assert trigger.severity is Severity.LOW
        assert trigger.alarms == set()
        assert trigger.trigger_all is True

    def test_round_trip_keeps_identity(self, trigger):
        assert Trigger.from_dict(trigger.to_dict()) == trigger
