"""Cliente MQTT del bridge (paho-mqtt).

Una sola conexión para ambos sentidos:
- Suscripción al topic de sensores (re-suscribe en cada reconexión)
- Publicación de comandos al topic de controles
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from ..errors import PublishError

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"mqtt": 1883, "tcp": 1883, "mqtts": 8883, "ssl": 8883, "ws": 80, "wss": 443}
_TLS_SCHEMES = {"mqtts", "ssl", "wss"}
_WS_SCHEMES = {"ws", "wss"}


@dataclass(frozen=True)
class BrokerEndpoint:
    host: str
    port: int
    tls: bool
    transport: str
    path: str


def parse_broker_url(url: str) -> BrokerEndpoint:
    """Traduce HIVEMQ_URL (mqtt://, mqtts://, ws://, wss://) a parámetros de paho."""
    parsed = urlparse(url if "://" in url else f"mqtt://{url}")
    scheme = (parsed.scheme or "mqtt").lower()
    if scheme not in _DEFAULT_PORTS:
        raise ValueError(f"Unsupported broker URL scheme: {scheme}")
    if not parsed.hostname:
        raise ValueError(f"Broker URL has no host: {url}")

    return BrokerEndpoint(
        host=parsed.hostname,
        port=parsed.port or _DEFAULT_PORTS[scheme],
        tls=scheme in _TLS_SCHEMES,
        transport="websockets" if scheme in _WS_SCHEMES else "tcp",
        path=parsed.path or "/mqtt",
    )


class BridgeMQTTClient:
    """Cliente MQTT para recepción de telemetría y envío de comandos.

    Responsabilidades:
    - Conexión/desconexión al broker (reconexión delegada a paho)
    - Suscripción a topics en cada on_connect
    - Delegación de mensajes a handler
    - Publicación síncrona con verificación del rc
    """

    def __init__(
        self,
        broker_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "cooling-bridge",
        connect_timeout: float = 10.0,
        qos: int = 0,
        subscriptions: Iterable[str] = (),
        client_factory: Callable[..., Any] = mqtt.Client,
    ):
        self.endpoint = parse_broker_url(broker_url)
        self.username = username
        self.password = password
        self.client_id = f"{client_id}-{int(time.time())}"
        self.connect_timeout = connect_timeout
        self.qos = qos
        self.subscriptions = tuple(subscriptions)

        self._client_factory = client_factory
        self._client: Optional[mqtt.Client] = None
        self._connected = False
        self._running = False
        self._message_handler: Optional[Callable[[str, bytes], None]] = None
        self._reconnect_count = 0
        self._published = 0

    def set_message_handler(self, handler: Callable[[str, bytes], None]):
        """Configura el handler de mensajes."""
        self._message_handler = handler

    def start(self) -> bool:
        """Conecta al broker y arranca el loop de red.

        No lanza si el broker no responde: paho sigue reintentando en su hilo
        y el proceso continúa atendiendo HTTP.
        """
        self._client = self._client_factory(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            clean_session=True,
            protocol=mqtt.MQTTv311,
            transport=self.endpoint.transport,
        )

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        if self.username:
            self._client.username_pw_set(self.username, self.password)
        if self.endpoint.tls:
            self._client.tls_set()
        if self.endpoint.transport == "websockets":
            self._client.ws_set_options(path=self.endpoint.path)

        self._client.connect_timeout = self.connect_timeout
        self._client.reconnect_delay_set(min_delay=1, max_delay=30)

        logger.info(
            "[MQTT] Connecting to %s:%d (transport=%s tls=%s)",
            self.endpoint.host,
            self.endpoint.port,
            self.endpoint.transport,
            self.endpoint.tls,
        )
        self._client.connect_async(self.endpoint.host, self.endpoint.port, keepalive=60)
        self._client.loop_start()
        self._running = True

        # Esperar conexión
        deadline = time.monotonic() + self.connect_timeout
        while time.monotonic() < deadline:
            if self._connected:
                return True
            time.sleep(0.1)

        logger.error(
            "[MQTT] Connection timeout after %.1fs - will keep retrying in background",
            self.connect_timeout,
        )
        return False

    def stop(self):
        """Desconecta del broker."""
        self._running = False
        if self._client:
            try:
                self._client.disconnect()
                self._client.loop_stop()
            except Exception as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected = False
        logger.info("[MQTT] Stopped. published=%d reconnects=%d", self._published, self._reconnect_count)

    def publish(self, topic: str, message: dict) -> None:
        """Publica un mensaje JSON.

        Raises:
            PublishError: sin cliente, sin conexión o rc distinto de éxito
        """
        if self._client is None:
            raise PublishError(topic, "client not started")
        # Con QoS>0 paho encola el mensaje aunque no haya conexión y lo envía
        # al reconectar; un comando rechazado no debe llegar al dispositivo.
        if not self._connected:
            raise PublishError(topic, "not connected")

        payload = json.dumps(message)
        info = self._client.publish(topic, payload, qos=self.qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self._discard_queued(info.mid)
            raise PublishError(topic, mqtt.error_string(info.rc))

        self._published += 1
        logger.info("[MQTT] Published to %s: %s", topic, payload)

    def _discard_queued(self, mid: int) -> None:
        # paho no expone una API para cancelar un mensaje pendiente
        queued = getattr(self._client, "_out_messages", None)
        lock = getattr(self._client, "_out_message_mutex", None)
        if not isinstance(queued, dict) or lock is None:
            return
        with lock:
            if queued.pop(mid, None) is not None:
                logger.warning("[MQTT] Dropped queued message mid=%s", mid)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión."""
        if reason_code == 0:
            self._connected = True
            logger.info("[MQTT] Connected to broker")
            for topic in self.subscriptions:
                result, _mid = client.subscribe(topic, qos=self.qos)
                if result != mqtt.MQTT_ERR_SUCCESS:
                    logger.error("[MQTT] Subscribe to %s failed: %s", topic, mqtt.error_string(result))
                else:
                    logger.info("[MQTT] Subscribed to %s", topic)
        else:
            self._connected = False
            logger.error("[MQTT] Connection failed: reason=%s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected = False
        if self._running:
            self._reconnect_count += 1
            logger.warning("[MQTT] Disconnected (reason=%s) - reconnecting", reason_code)

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al handler."""
        if self._message_handler:
            self._message_handler(msg.topic, msg.payload)

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_running(self) -> bool:
        return self._running

    def health_check(self) -> dict:
        return {
            "healthy": self._running and self._connected,
            "running": self._running,
            "connected": self._connected,
            "broker": f"{self.endpoint.host}:{self.endpoint.port}",
            "messages_published": self._published,
            "reconnect_count": self._reconnect_count,
        }
