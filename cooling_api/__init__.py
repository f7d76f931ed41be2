"""Bridge MQTT ↔ BD ↔ HTTP del sistema de resfriamiento.

Estructura:
- mqtt/        → Cliente MQTT, validación y recepción de telemetría
- queries/     → Consultas de solo lectura
- endpoints/   → Rutas HTTP
- dispatcher   → Publicación y registro de comandos de control
"""
