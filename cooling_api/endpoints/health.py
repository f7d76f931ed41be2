"""Health endpoint."""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    """Liveness + estado de MQTT y contadores de ingesta."""
    return {
        "status": "ok",
        "mqtt": request.app.state.mqtt_client.health_check(),
        "ingest": request.app.state.receiver.stats.to_dict(),
    }
