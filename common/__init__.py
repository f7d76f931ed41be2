"""Configuración y acceso a BD compartidos por el bridge."""
