"""
MQTT bus gateway built on aiomqtt.

Owns the broker connection: connects with a clean session, subscribes,
runs the coordinator's discovery handshake and feeds it every inbound
message. Outbound publishes are queued and sent by a separate task, so the
coordinator never waits on the broker.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import aiomqtt

from home_sentry.coordinator.adapter import BusGateway, OutboundMessage
from home_sentry.core.exceptions import TransportFault

if TYPE_CHECKING:
    from home_sentry.coordinator.service import Coordinator

logger = logging.getLogger(__name__)


@dataclass
class BrokerConfig:
    """Broker connection settings."""

    host: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: Optional[str] = None  # None = let the client generate one
    keepalive: int = 60  # Seconds
    reconnect_interval: float = 5.0  # Seconds between connection attempts

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "password": self.password,
            "client_id": self.client_id,
            "keepalive": self.keepalive,
            "reconnect_interval": self.reconnect_interval,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrokerConfig":
        """Deserialize from dict."""
        return cls(
            host=data.get("host", "localhost"),
            port=data.get("port", 1883),
            username=data.get("username"),
            password=data.get("password"),
            client_id=data.get("client_id"),
            keepalive=data.get("keepalive", 60),
            reconnect_interval=data.get("reconnect_interval", 5.0),
        )


class MqttBusGateway(BusGateway):
    """
    BusGateway backed by an MQTT broker.

    Usage:
        gateway = MqttBusGateway(BrokerConfig(host="broker.local"))
        coordinator = Coordinator(gateway)
        await gateway.run(coordinator)

    publish() and subscribe() are safe to call from any thread.
    """

    def __init__(self, config: Optional[BrokerConfig] = None) -> None:
        self._config = config or BrokerConfig()
        self._filters: List[str] = []
        self._client: Optional[aiomqtt.Client] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._outbound: Optional[asyncio.Queue] = None
        self._live = False  # Connected and initial subscriptions done
        self._stopping = False

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    # =========================================================================
    # BusGateway implementation
    # =========================================================================

    def subscribe(self, topic_filter: str) -> None:
        if topic_filter in self._filters:
            return
        self._filters.append(topic_filter)

        # Filters added after connecting are subscribed right away; the rest
        # are picked up when the connection comes up.
        if self._live and self._loop and self._client:
            asyncio.run_coroutine_threadsafe(
                self._client.subscribe(topic_filter, qos=0), self._loop
            )

    def publish(
        self,
        topic: str,
        payload: bytes,
        qos: int = 0,
        retained: bool = False,
    ) -> None:
        if self._loop is None or self._outbound is None:
            logger.warning(f"Not connected, dropping message to {topic}")
            return
        message = OutboundMessage(topic, payload, qos, retained)
        self._loop.call_soon_threadsafe(self._outbound.put_nowait, message)

    # =========================================================================
    # Connection loop
    # =========================================================================

    async def run(self, coordinator: "Coordinator") -> None:
        """
        Connect and deliver messages until stop() is called.

        Connection loss is reported to the coordinator, then the gateway
        reconnects after ``reconnect_interval`` seconds.

        Args:
            coordinator: Receives inbound messages and connection loss
        """
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.current_task()

        try:
            while not self._stopping:
                try:
                    await self._session(coordinator)
                except aiomqtt.MqttError as e:
                    if self._stopping:
                        break
                    coordinator.on_connection_lost(TransportFault(e))
                    logger.info(f"Reconnecting in {self._config.reconnect_interval}s")
                    await asyncio.sleep(self._config.reconnect_interval)
        except asyncio.CancelledError:
            if not self._stopping:
                raise
        finally:
            coordinator.stop()
            self._task = None
            logger.info("MQTT gateway stopped")

    def stop(self) -> None:
        """Stop the connection loop."""
        self._stopping = True
        if self._loop and self._task:
            self._loop.call_soon_threadsafe(self._task.cancel)

    async def _session(self, coordinator: "Coordinator") -> None:
        """Run one broker connection from connect to disconnect."""
        async with aiomqtt.Client(
            hostname=self._config.host,
            port=self._config.port,
            username=self._config.username,
            password=self._config.password,
            identifier=self._config.client_id,
            keepalive=self._config.keepalive,
            clean_session=True,
        ) as client:
            self._client = client
            self._outbound = asyncio.Queue()
            logger.info(f"Connected to MQTT broker {self._config.host}:{self._config.port}")

            publisher: Optional[asyncio.Task] = None
            try:
                # start() records the subscriptions and queues the hello; the
                # publisher starts once the subscriptions are in place.
                coordinator.start()
                for topic_filter in list(self._filters):
                    await client.subscribe(topic_filter, qos=0)
                    logger.debug(f"Subscribed to {topic_filter}")
                self._live = True

                publisher = asyncio.create_task(self._publish_loop(client, self._outbound))

                async for message in client.messages:
                    coordinator.on_message(message.topic.value, _as_bytes(message.payload))

                logger.warning("MQTT message stream ended")
            finally:
                if publisher:
                    publisher.cancel()
                self._live = False
                self._client = None
                self._outbound = None

    async def _publish_loop(self, client: aiomqtt.Client, queue: asyncio.Queue) -> None:
        """Send queued messages in order."""
        while True:
            message: OutboundMessage = await queue.get()
            try:
                await client.publish(
                    message.topic,
                    payload=message.payload,
                    qos=message.qos,
                    retain=message.retained,
                )
                logger.debug(f"Published to {message.topic}")
            except aiomqtt.MqttError as e:
                logger.error(f"Failed to publish to {message.topic}: {e}")


def _as_bytes(payload: Any) -> bytes:
    if payload is None:
        return b""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    return str(payload).encode()
