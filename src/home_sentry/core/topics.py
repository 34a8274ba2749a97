"""
Topic codec for the sensor/alarm bus namespace.

Topics look like ``<category>/<device_type>/<device_name>``, e.g.
``sensors/temperature/kitchen``. The bare category (``alarms``) is the
discovery topic used for the hello handshake.
"""

import re
from dataclasses import dataclass
from typing import Optional

from home_sentry.core.exceptions import MalformedTopic

SENSORS = "sensors"
ALARMS = "alarms"

ONLINE = "online"
OFFLINE = "offline"
HELLO = "hello"

CATEGORIES = (SENSORS, ALARMS)

_DEVICE_TOPIC = re.compile(r"^[^/]+/\w+/\w+$")


@dataclass(frozen=True)
class DeviceTopic:
    """A decoded device topic."""

    category: str
    device_type: str
    device_name: str

    @property
    def topic(self) -> str:
        return encode(self.category, self.device_type, self.device_name)


def category_of(topic: str, categories: tuple = CATEGORIES) -> Optional[str]:
    """
    Get the category prefix of a topic.

    Only a whole first segment counts, so ``sensorsX/a/b`` has no category.

    Args:
        topic: Raw bus topic
        categories: Recognized category prefixes

    Returns:
        The matching category, or None if the topic is outside the namespace
    """
    head = topic.split("/", 1)[0]
    if head in categories:
        return head
    return None


def decode(topic: str, categories: tuple = CATEGORIES) -> DeviceTopic:
    """
    Decode a device topic.

    The device type and name are the second and third segments; anything
    below them (``sensors/temperature/kitchen/probe1``) is ignored.

    Args:
        topic: Raw bus topic
        categories: Recognized category prefixes

    Returns:
        The decoded DeviceTopic

    Raises:
        MalformedTopic: If the prefix is unknown, the topic has fewer than
            three segments, or the type or name segment is empty
    """
    category = category_of(topic, categories)
    if category is None:
        raise MalformedTopic(topic, "unknown category")

    parts = topic.split("/")
    if len(parts) < 3:
        raise MalformedTopic(topic, f"expected at least 3 segments, got {len(parts)}")

    device_type, device_name = parts[1], parts[2]
    if not (device_type and device_name):
        raise MalformedTopic(topic, "empty device segment")

    return DeviceTopic(category, device_type, device_name)


def is_device_topic(topic: str, category: str) -> bool:
    """
    Check for exactly ``<category>/<word>/<word>`` (word = ``\\w+``).

    Alarms only announce presence on such topics.
    """
    return _DEVICE_TOPIC.match(topic) is not None and topic.split("/", 1)[0] == category


def device_segment(device_type: str, device_name: str) -> str:
    """Encode the device part of a topic (``/<type>/<name>``)."""
    return f"/{device_type}/{device_name}"


def encode(category: str, device_type: str, device_name: str) -> str:
    """Encode a full device topic; the inverse of decode()."""
    return category + device_segment(device_type, device_name)


def wildcard(category: str) -> str:
    """Subscription filter covering every device topic of a category."""
    return f"{category}/#"
