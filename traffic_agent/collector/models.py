"""Modelos de lecturas crudas devueltas por el Collector."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RawSample:
    """Lectura instantánea de un contador acumulativo."""
    if_index: int
    counter: str
    if_name: str
    value: int  # unsigned 64-bit

    @property
    def key(self) -> tuple[int, str]:
        return (self.if_index, self.counter)


@dataclass(frozen=True)
class InterfaceInfo:
    """Inventario de una interfaz con dirección IP."""
    if_name: str
    ip_addresses: tuple[str, ...] = ()
    mac_address: str = ""
