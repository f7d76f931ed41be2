"""Dependencias compartidas por los endpoints."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from ..dispatcher import CommandDispatcher
from ..state import LastCommandState

INTERNAL_ERROR = "Internal server error"


def get_dispatcher(request: Request) -> CommandDispatcher:
    return request.app.state.dispatcher


def get_command_state(request: Request) -> LastCommandState:
    return request.app.state.command_state


def db_failure(db: Session, logger: logging.Logger, where: str, exc: Exception) -> HTTPException:
    """Rollback + log; devuelve el 500 genérico (sin detalles de BD al cliente)."""
    db.rollback()
    logger.exception("[DB] error in %s err=%s", where, type(exc).__name__)
    return HTTPException(status_code=500, detail=INTERNAL_ERROR)
