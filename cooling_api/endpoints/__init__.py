"""Módulo de endpoints HTTP.

Contiene los endpoints del bridge organizados por recurso.
"""

from .controls import router as controls_router
from .health import router as health_router
from .sensordata import router as sensordata_router

__all__ = [
    "controls_router",
    "health_router",
    "sensordata_router",
]
