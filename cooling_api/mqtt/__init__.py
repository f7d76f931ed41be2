"""MQTT del bridge.

- client.py: conexión paho, suscripción y publicación
- validators.py: validación de telemetría y comandos
- receiver.py: persistencia de telemetría entrante
"""

from .client import BridgeMQTTClient, BrokerEndpoint, parse_broker_url
from .receiver import TelemetryReceiver
from .validators import (
    ControlRequest,
    SensorPayload,
    ValidationResult,
    validate_control_request,
    validate_sensor_payload,
)

__all__ = [
    "BridgeMQTTClient",
    "BrokerEndpoint",
    "parse_broker_url",
    "TelemetryReceiver",
    "ControlRequest",
    "SensorPayload",
    "ValidationResult",
    "validate_control_request",
    "validate_sensor_payload",
]
