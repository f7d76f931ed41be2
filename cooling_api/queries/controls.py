"""Queries de comandos de control."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from common.tables import control_commands

from ..schemas import ControlCommandOut, ControlMode, as_utc


def get_latest_control_command(db: Session) -> Optional[ControlCommandOut]:
    """Obtiene el comando persistido más reciente, o None si no hay ninguno."""
    row = db.execute(
        select(control_commands)
        .order_by(control_commands.c.timestamp.desc(), control_commands.c.id.desc())
        .limit(1)
    ).fetchone()

    if not row:
        return None

    return ControlCommandOut(
        id=int(row.id),
        mode=ControlMode(row.mode),
        ventilador=bool(row.ventilador),
        aspersor=bool(row.aspersor),
        timestamp=as_utc(row.timestamp),
    )
