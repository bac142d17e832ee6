"""Errores de configuración."""

from __future__ import annotations


class ConfigError(Exception):
    """Configuración inválida a nivel global (fatal en el arranque)."""


class TargetConfigError(ConfigError):
    """Un target concreto es inválido; se descarta y el resto continúa."""
