"""Arranque del bridge: MQTT + BD + HTTP en un solo proceso.

Ejecutar:
    cooling-bridge
    uvicorn cooling_api.main:create_app --factory --port 3000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from common.config import Settings, get_settings
from common.db import build_session_factory, ensure_schema, get_engine

from .dispatcher import CommandDispatcher
from .endpoints import controls_router, health_router, sensordata_router
from .mqtt.client import BridgeMQTTClient
from .mqtt.receiver import TelemetryReceiver
from .state import LastCommandState

logger = logging.getLogger(__name__)


def build_mqtt_client(settings: Settings) -> BridgeMQTTClient:
    return BridgeMQTTClient(
        broker_url=settings.broker_url,
        username=settings.mqtt_username,
        password=settings.mqtt_password,
        client_id=settings.mqtt_client_id,
        connect_timeout=settings.mqtt_connect_timeout,
        qos=settings.mqtt_qos,
        subscriptions=(settings.sensor_topic,),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("[BOOT] Starting cooling bridge")
    ensure_schema(app.state.engine)

    mqtt_client = app.state.mqtt_client
    mqtt_client.set_message_handler(app.state.receiver.handle)
    # start() espera la conexión hasta connect_timeout; fuera del event loop
    await run_in_threadpool(mqtt_client.start)
    try:
        yield
    finally:
        logger.info("[BOOT] Shutting down cooling bridge")
        mqtt_client.stop()
        app.state.engine.dispose()


async def _invalid_body_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # JSON mal formado o cuerpo ilegible: mismo 400 que una validación fallida
    errors = exc.errors()
    reason = errors[0].get("msg") if errors else "unreadable body"
    return JSONResponse(status_code=400, content={"detail": f"Invalid request body: {reason}"})


def create_app(
    settings: Optional[Settings] = None,
    mqtt_client: Optional[BridgeMQTTClient] = None,
    engine: Optional[Engine] = None,
) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or get_engine(settings)
    mqtt_client = mqtt_client or build_mqtt_client(settings)

    app = FastAPI(title="Cooling System Bridge", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.mqtt_client = mqtt_client
    app.state.command_state = LastCommandState()
    app.state.receiver = TelemetryReceiver(app.state.session_factory, settings.sensor_topic)
    app.state.dispatcher = CommandDispatcher(
        mqtt_client,
        settings.control_topic,
        app.state.command_state,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _invalid_body_handler)

    app.include_router(health_router)
    app.include_router(sensordata_router)
    app.include_router(controls_router)
    return app


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def configure_logging(level: str) -> None:
    # basicConfig no hace nada si el root ya tiene handlers (uvicorn --factory, pytest)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
