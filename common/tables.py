"""Tablas append-only del bridge.

Solo se insertan filas; nada en este servicio actualiza ni borra.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, MetaData, String, Table


metadata = MetaData()


sensor_data = Table(
    "sensor_data",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("humidity", Float, nullable=False),
    Column("temperature", Float, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False, index=True),
)


control_commands = Table(
    "control_commands",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mode", String(16), nullable=False),
    Column("ventilador", Boolean, nullable=False),
    Column("aspersor", Boolean, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False, index=True),
)
