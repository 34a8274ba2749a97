#!/usr/bin/env python3
"""
Run the coordinator against a real MQTT broker.

This example demonstrates:
1. Wiring a Coordinator to the aiomqtt gateway
2. Loading triggers from a JSON file (list of Trigger.to_dict() entries)
3. Logging sensor events from a listener

Triggers can only target alarms that are online, so each one is added once
every alarm it names has announced itself.

Run with: PYTHONPATH=src python3 examples/mqtt-coordinator.py --host localhost
"""

import argparse
import asyncio
import json
import logging
import signal

from home_sentry.coordinator import Coordinator, CoordinatorConfig
from home_sentry.core.bus import EventFilter, SensorTriggered
from home_sentry.core.models import Trigger
from home_sentry.gateway import BrokerConfig, MqttBusGateway

logger = logging.getLogger("mqtt-coordinator")


def parse_args():
    parser = argparse.ArgumentParser(description="home-sentry coordinator")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=1883)
    parser.add_argument("--username")
    parser.add_argument("--password")
    parser.add_argument("--triggers", help="JSON file with trigger definitions")
    parser.add_argument("--keep-triggers", action="store_true",
                        help="Keep triggers when the connection drops")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def load_triggers(path):
    with open(path) as f:
        return [Trigger.from_dict(entry) for entry in json.load(f)]


async def main():
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    gateway = MqttBusGateway(
        BrokerConfig(
            host=args.host,
            port=args.port,
            username=args.username,
            password=args.password,
        )
    )
    coordinator = Coordinator(
        gateway,
        CoordinatorConfig(retain_triggers_on_reset=args.keep_triggers),
    )

    pending = load_triggers(args.triggers) if args.triggers else []

    def on_alarm(alarm, online):
        if not online:
            return
        known = coordinator.all_alarms()
        for trigger in list(pending):
            if trigger.trigger_all or (trigger.alarms and trigger.alarms <= known):
                coordinator.add_trigger(trigger)
                pending.remove(trigger)

    coordinator.register_alarm_listener(on_alarm)

    def on_triggered(event):
        logger.warning(
            f"Trigger {event.trigger.id} fired: "
            f"{event.sensor.device_type}/{event.sensor.device_name} = {event.sensor.value}"
        )

    coordinator.register_listener(on_triggered, EventFilter(SensorTriggered))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, gateway.stop)

    await gateway.run(coordinator)


if __name__ == "__main__":
    asyncio.run(main())
