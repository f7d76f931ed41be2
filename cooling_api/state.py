"""Último comando publicado por este proceso.

Vive en app.state; lo escribe el dispatcher tras cada publicación exitosa
y lo lee GET /api/controls/current. No es persistente ni autoritativo:
la tabla control_commands lo es.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from .schemas import ControlCommandPayload, ControlMode, CurrentCommand


class LastCommandState:

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._command = ControlCommandPayload(mode=ControlMode.MANUAL, ventilador=False, aspersor=False)
        self._updated_at = None

    def get(self) -> CurrentCommand:
        with self._lock:
            return CurrentCommand(**self._command.model_dump(), updated_at=self._updated_at)

    def set(self, command: ControlCommandPayload) -> None:
        with self._lock:
            self._command = command
            self._updated_at = datetime.now(timezone.utc)
