"""Worker periódico: ejecuta un ticker cada ``period`` segundos.

- Primer tick inmediato al arrancar
- Sin solapamiento: el siguiente tick espera a que termine el anterior
- Sin recuperación de ticks perdidos si un ciclo tarda más que el periodo
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .config.models import TargetConfig
from .interfaces import Ticker

logger = logging.getLogger(__name__)


class Worker:
    def __init__(self, ticker: Ticker, period: float):
        if period <= 0:
            raise ValueError("period must be positive")
        self._ticker = ticker
        self._period = period

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._exited = threading.Event()
        self._serving = False
        self._is_shutdown = False

    def serve(self) -> None:
        with self._lock:
            if self._is_shutdown or self._serving:
                return
            self._serving = True

        logger.debug("[WORKER] started target=%s period=%.1fs", self.target_id, self._period)
        try:
            while not self._stop_event.is_set():
                started = time.monotonic()
                self._tick()
                wait = self._period - (time.monotonic() - started)
                if wait < 0:
                    # El ciclo tardó más que el periodo: se arranca al siguiente sin recuperar.
                    wait = self._period - (-wait % self._period)
                self._stop_event.wait(wait)
        finally:
            self._exited.set()
            logger.debug("[WORKER] stopped target=%s", self.target_id)

    def _tick(self) -> None:
        try:
            self._ticker.tick()
        except Exception:
            logger.exception("[WORKER] tick failed target=%s", self.target_id)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Detiene el bucle y espera a que termine el tick en curso.

        ``timeout`` se ignora: ningún tick corre después de que esto retorna.
        El plazo global lo aplica el Supervisor.
        """
        with self._lock:
            self._is_shutdown = True
            serving = self._serving

        # Idempotente; toda llamada concurrente también espera la salida del bucle.
        self._stop_event.set()
        if serving:
            self._exited.wait()

    def reload(self, conf: TargetConfig) -> None:
        self._ticker.reload(conf)

    @property
    def target_id(self) -> str:
        return self._ticker.target_id

    @property
    def alive(self) -> bool:
        with self._lock:
            return not self._is_shutdown
