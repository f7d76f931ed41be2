from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


SENSOR_TOPIC = "coolingSystem/sensores"
CONTROL_TOPIC = "coolingSystem/controles"


def _default_env_file() -> str:
    # El .env vive en el directorio de trabajo del proceso.
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    broker_url: str
    mqtt_username: Optional[str]
    mqtt_password: Optional[str]
    mqtt_client_id: str
    mqtt_connect_timeout: float
    mqtt_qos: int

    sensor_topic: str
    control_topic: str

    database_url: str
    port: int
    cors_origins: Tuple[str, ...]
    log_level: str


def _read_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _read_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_qos(default: int) -> int:
    qos = _read_int("MQTT_QOS", default)
    return qos if qos in (0, 1, 2) else default


def _read_origins(default: str) -> Tuple[str, ...]:
    raw = os.getenv("CORS_ORIGINS", default)
    origins = tuple(o.strip() for o in raw.split(",") if o.strip())
    return origins or (default,)


def get_settings() -> Settings:
    # Carga el .env (si existe) sin pisar variables reales del entorno.
    env_file = os.getenv("COOLING_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    broker_url = os.getenv("HIVEMQ_URL", "mqtt://localhost:1883").strip()
    mqtt_username = os.getenv("MQTT_USER") or None
    mqtt_password = os.getenv("MQTT_PASS") or None
    mqtt_client_id = os.getenv("MQTT_CLIENT_ID", "cooling-bridge").strip() or "cooling-bridge"

    database_url = os.getenv("DATABASE_URL", "sqlite:///./cooling.db").strip()

    return Settings(
        broker_url=broker_url,
        mqtt_username=mqtt_username,
        mqtt_password=mqtt_password,
        mqtt_client_id=mqtt_client_id,
        mqtt_connect_timeout=_read_float("MQTT_CONNECT_TIMEOUT", 10.0),
        mqtt_qos=_read_qos(0),
        sensor_topic=SENSOR_TOPIC,
        control_topic=CONTROL_TOPIC,
        database_url=database_url,
        port=_read_int("PORT", 3000),
        cors_origins=_read_origins("*"),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )
