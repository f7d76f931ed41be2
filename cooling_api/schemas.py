from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ControlMode(str, Enum):
    AUTOMATIC = "AUTOMATIC"
    MANUAL = "MANUAL"


# Tokens aceptados en POST /api/controls → modo normalizado
MODE_TOKENS: Dict[str, ControlMode] = {
    "automatico": ControlMode.AUTOMATIC,
    "manual": ControlMode.MANUAL,
}


class SensorReadingOut(BaseModel):
    id: int
    humidity: float
    temperature: float
    timestamp: datetime


class ControlCommandPayload(BaseModel):
    """Comando normalizado tal como viaja por MQTT."""

    mode: ControlMode
    ventilador: bool
    aspersor: bool

    def to_message(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "ventilador": self.ventilador,
            "aspersor": self.aspersor,
        }


class ControlCommandOut(ControlCommandPayload):
    id: int
    timestamp: datetime


class ControlResponse(BaseModel):
    message: str
    command: ControlCommandOut


class CurrentCommand(ControlCommandPayload):
    """Último comando publicado en este proceso (no persistido)."""

    updated_at: Optional[datetime] = Field(
        default=None, description="None while the startup default is still in place."
    )


def as_utc(value: datetime) -> datetime:
    """SQLite devuelve datetimes naive; todo lo persistido está en UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
