"""Consultas de solo lectura sobre telemetría y comandos."""

from .controls import get_latest_control_command
from .telemetry import (
    SENSOR_HISTORY_LIMIT,
    get_latest_sensor_reading,
    list_sensor_readings,
)

__all__ = [
    "SENSOR_HISTORY_LIMIT",
    "get_latest_sensor_reading",
    "list_sensor_readings",
    "get_latest_control_command",
]
