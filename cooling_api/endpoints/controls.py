"""Endpoints de comandos de control."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.db import get_db

from ..dispatcher import CommandDispatcher
from ..errors import PublishError
from ..mqtt.validators import validate_control_request
from ..queries import get_latest_control_command
from ..schemas import ControlCommandOut, ControlResponse, CurrentCommand
from ..state import LastCommandState
from .deps import db_failure, get_command_state, get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/controls", tags=["controls"])


@router.post("", response_model=ControlResponse)
def post_control(
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    """Valida, publica por MQTT y persiste un comando de control."""
    validation = validate_control_request(payload)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error)

    try:
        saved = dispatcher.dispatch(db, validation.payload)
    except PublishError as e:
        logger.error("[CONTROLS] %s", e)
        raise HTTPException(status_code=500, detail="Failed to publish MQTT command") from e
    except SQLAlchemyError as e:
        raise db_failure(db, logger, "/api/controls", e) from e

    return ControlResponse(message="Control command sent and saved successfully", command=saved)


@router.get("/latest", response_model=Optional[ControlCommandOut])
def get_latest(db: Session = Depends(get_db)):
    """Último comando persistido (null si todavía no hay ninguno)."""
    try:
        return get_latest_control_command(db)
    except SQLAlchemyError as e:
        raise db_failure(db, logger, "/api/controls/latest", e) from e


@router.get("/current", response_model=CurrentCommand)
def get_current(state: LastCommandState = Depends(get_command_state)):
    """Último comando publicado por este proceso, sin pasar por BD."""
    return state.get()
