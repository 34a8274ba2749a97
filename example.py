#!/usr/bin/env python3
"""
Quick example demonstrating home-sentry basic usage.

Drives the coordinator through a mock gateway, so no broker is needed.

Run with: PYTHONPATH=src python3 example.py
"""

from home_sentry import (
    Alarm,
    Coordinator,
    MockBusGateway,
    Sensor,
    SensorTriggered,
    Severity,
    ThresholdCondition,
    Trigger,
)

print("=" * 60)
print("home-sentry Example")
print("=" * 60)

# 1. Coordinator with an in-memory gateway
print("\n1. Starting coordinator...")
gateway = MockBusGateway()
coordinator = Coordinator(gateway)
coordinator.start()
print(f"   ✓ Subscribed to {gateway.get_subscriptions()}")
print(f"   ✓ Sent discovery: {gateway.get_published()[0].topic} {gateway.get_published()[0].payload!r}")
gateway.clear_published()

# 2. A UI listener
print("\n2. Registering a listener...")


def ui_listener(event):
    sensor = event.sensor
    print(f"   → {type(event).__name__}: {sensor.device_type}/{sensor.device_name} = {sensor.value}")


coordinator.register_listener(ui_listener)
print("   ✓ Listener registered")

# 3. An alarm announces itself
print("\n3. Alarm discovery...")
coordinator.on_message("alarms/siren/frontdoor", b"online")
print(f"   ✓ Alarms online: {[a.topic for a in coordinator.all_alarms()]}")

# 4. Add a trigger
print("\n4. Adding trigger: kitchen temperature above 25 → siren")
trigger = Trigger(
    sensor=Sensor("temperature", "kitchen"),
    condition=ThresholdCondition(above=25),
    severity=Severity.HIGH,
    alarms={Alarm("siren", "frontdoor")},
)
coordinator.add_trigger(trigger)
print(f"   ✓ Trigger {trigger.id} added")

# 5. Readings arrive
print("\n5. Sensor readings...")
coordinator.on_message("sensors/temperature/kitchen", b"time=1000,temp=21.5")
coordinator.on_message("sensors/temperature/kitchen", b"time=2000,temp=30.0")
for message in gateway.get_published():
    print(f"   ✓ Alarm command: {message.topic} {message.payload!r}")

# 6. The alarm goes offline
print("\n6. Alarm goes offline...")
coordinator.on_message("alarms/siren/frontdoor", b"offline")
print(f"   ✓ Triggers left: {len(coordinator.all_triggers())}")

print("\n" + "=" * 60)
print("Example complete!")
print("=" * 60)
