"""
Bus gateway interface for the coordinator.

The gateway is the abstraction layer between the coordinator and the
message transport (an MQTT broker in production). The coordinator only
ever subscribes and publishes through it; connecting, reconnecting and
message delivery belong to the concrete gateway.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class OutboundMessage:
    """A message handed to the gateway for publishing."""

    topic: str
    payload: bytes
    qos: int = 0
    retained: bool = False


class BusGateway(ABC):
    """
    Abstract interface for bus operations.

    This interface is intentionally minimal:
    - subscribe: Ask for messages matching a topic filter
    - publish: Send a message, fire-and-forget

    Implementations deliver inbound traffic by calling the coordinator's
    ``on_message(topic, payload)`` and report transport loss through
    ``on_connection_lost(cause)``.
    """

    @abstractmethod
    def subscribe(self, topic_filter: str) -> None:
        """
        Subscribe to a topic filter.

        Args:
            topic_filter: Topic or wildcard filter (e.g., "sensors/#")
        """
        pass

    @abstractmethod
    def publish(
        self,
        topic: str,
        payload: bytes,
        qos: int = 0,
        retained: bool = False,
    ) -> None:
        """
        Publish a message.

        Must not block longer than it takes to enqueue the send.

        Args:
            topic: Destination topic
            payload: Raw message body
            qos: Delivery quality of service (0 = at most once)
            retained: Ask the broker to retain the message
        """
        pass


class MockBusGateway(BusGateway):
    """
    Mock gateway for testing.

    Records subscriptions and published messages instead of sending them.
    """

    def __init__(self) -> None:
        self._subscriptions: List[str] = []
        self._published: List[OutboundMessage] = []

    def get_subscriptions(self) -> List[str]:
        """Get recorded subscriptions."""
        return self._subscriptions.copy()

    def get_published(self) -> List[OutboundMessage]:
        """Get recorded published messages."""
        return self._published.copy()

    def clear_published(self) -> None:
        """Clear recorded published messages."""
        self._published.clear()

    # BusGateway implementation

    def subscribe(self, topic_filter: str) -> None:
        if topic_filter not in self._subscriptions:
            self._subscriptions.append(topic_filter)

    def publish(
        self,
        topic: str,
        payload: bytes,
        qos: int = 0,
        retained: bool = False,
    ) -> None:
        self._published.append(OutboundMessage(topic, payload, qos, retained))
