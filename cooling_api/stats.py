"""Contadores de ingesta de telemetría (expuestos en /health)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass
class IngestStats:
    """Qué pasó con cada mensaje recibido en el topic de sensores.

    received = saved + rejected + db_errors + unexpected_errors
    """

    received: int = 0
    saved: int = 0
    rejected: int = 0  # JSON ilegible o lectura inválida
    db_errors: int = 0
    unexpected_errors: int = 0
    last_received_at: Optional[datetime] = None
    last_reading_id: Optional[int] = None

    def mark_received(self) -> None:
        self.received += 1
        self.last_received_at = datetime.now(timezone.utc)

    def mark_saved(self, reading_id: int) -> None:
        self.saved += 1
        self.last_reading_id = reading_id

    @property
    def dropped(self) -> int:
        return self.rejected + self.db_errors + self.unexpected_errors

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "saved": self.saved,
            "dropped": self.dropped,
            "rejected": self.rejected,
            "db_errors": self.db_errors,
            "unexpected_errors": self.unexpected_errors,
            "last_received_at": self.last_received_at.isoformat() if self.last_received_at else None,
            "last_reading_id": self.last_reading_id,
        }
