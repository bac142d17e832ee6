"""Exclusión mutua por conexión SNMP (host:port).

Dos targets con el mismo host:port (p.ej. distinto host-id) no deben
abrir sesiones simultáneas contra el mismo agente. Los locks se crean
bajo demanda y nunca se eliminan: el espacio de claves está acotado por
el número de targets configurados.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class ConnectionLockRegistry:
    """Registro clave de conexión → lock exclusivo."""

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.get(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
