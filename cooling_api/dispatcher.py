"""Despacho de comandos de control.

Orden fijo: validar → publicar → registrar en memoria → persistir.
Si la publicación falla no se persiste nada. Si la persistencia falla después
de publicar, el dispositivo ya recibió el comando pero no queda registro:
se loguea con el payload publicado para poder reconciliarlo a mano.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .mqtt.validators import ControlRequest
from .persistence import insert_control_command
from .schemas import ControlCommandOut
from .state import LastCommandState

logger = logging.getLogger(__name__)


class CommandPublisher(Protocol):
    def publish(self, topic: str, message: dict) -> None: ...


class CommandDispatcher:

    def __init__(self, publisher: CommandPublisher, control_topic: str, state: LastCommandState):
        self._publisher = publisher
        self.control_topic = control_topic
        self.state = state

    def dispatch(self, db: Session, request: ControlRequest) -> ControlCommandOut:
        """Publica y persiste un comando ya validado.

        Raises:
            PublishError: el broker no aceptó el mensaje (nada persistido)
            SQLAlchemyError: publicado pero no persistido
        """
        command = request.normalized()
        message = command.to_message()

        self._publisher.publish(self.control_topic, message)
        self.state.set(command)

        try:
            saved = insert_control_command(db, command)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(
                "[CONTROLS] Command published to %s but not persisted: %s",
                self.control_topic,
                message,
            )
            raise

        logger.info("[CONTROLS] Command saved id=%d mode=%s", saved.id, saved.mode.value)
        return saved
