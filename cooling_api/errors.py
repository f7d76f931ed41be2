from __future__ import annotations


class CoolingBridgeError(Exception):
    """Error base del bridge."""


class PublishError(CoolingBridgeError):
    """Excepción cuando el broker no acepta una publicación."""

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(f"Publish to '{topic}' failed: {reason}")
