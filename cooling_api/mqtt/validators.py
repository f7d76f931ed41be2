"""Validadores de payloads del bridge.

- Telemetría MQTT: {"umidade": number, "temperatura": number}
- Comandos HTTP:   {"modo": "automatico"|"manual", "ventilador": bool, "aspersor": bool}
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, StrictBool, ValidationError, validator

from ..schemas import MODE_TOKENS, ControlCommandPayload

logger = logging.getLogger(__name__)

CONTROL_CONTRACT = '{ modo: "automatico" | "manual", ventilador: boolean, aspersor: boolean }'


class SensorPayload(BaseModel):
    """Schema de telemetría publicada por el ESP32."""

    umidade: float
    temperatura: float

    @validator("umidade", "temperatura", pre=True)
    def validate_number(cls, v):
        # bool es subclase de int; un True no es una lectura
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        try:
            value = float(v)
        except OverflowError:
            raise ValueError("Value out of range")
        if math.isnan(value):
            raise ValueError("Value is NaN")
        if math.isinf(value):
            raise ValueError("Value is infinite")
        return value


class ControlRequest(BaseModel):
    """Schema del cuerpo de POST /api/controls."""

    modo: str
    ventilador: StrictBool
    aspersor: StrictBool

    @validator("modo", pre=True)
    def validate_modo(cls, v):
        if not isinstance(v, str) or v.lower() not in MODE_TOKENS:
            raise ValueError('must be "automatico" or "manual"')
        return v.lower()

    def normalized(self) -> ControlCommandPayload:
        return ControlCommandPayload(
            mode=MODE_TOKENS[self.modo],
            ventilador=self.ventilador,
            aspersor=self.aspersor,
        )


@dataclass
class ValidationResult:
    """Resultado de validación."""

    valid: bool
    payload: Optional[Any] = None
    error: Optional[str] = None


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


def validate_sensor_payload(data: Any) -> ValidationResult:
    """Valida telemetría ya parseada desde JSON."""
    if not isinstance(data, dict):
        return ValidationResult(valid=False, error="payload must be a JSON object")

    try:
        return ValidationResult(valid=True, payload=SensorPayload(**data))
    except ValidationError as e:
        return ValidationResult(valid=False, error=_describe(e))


def validate_control_request(data: Any) -> ValidationResult:
    """Valida el cuerpo de un comando de control.

    Returns:
        ValidationResult con un ControlRequest o un mensaje descriptivo
    """
    if not isinstance(data, dict):
        return ValidationResult(
            valid=False,
            error=f"Invalid control data. Expected {CONTROL_CONTRACT}",
        )

    try:
        payload = ControlRequest(**data)
    except ValidationError as e:
        logger.warning("[CONTROLS_VALIDATOR] Validation failed: %s", _describe(e))
        return ValidationResult(
            valid=False,
            error=f"Invalid control data ({_describe(e)}). Expected {CONTROL_CONTRACT}",
        )

    return ValidationResult(valid=True, payload=payload)
