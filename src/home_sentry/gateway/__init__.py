"""
Bus gateways for home-sentry.

Concrete transports implementing the coordinator's BusGateway interface.
"""

from .mqtt import BrokerConfig, MqttBusGateway

__all__ = ["BrokerConfig", "MqttBusGateway"]
