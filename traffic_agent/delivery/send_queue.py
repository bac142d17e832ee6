"""Cola de envío en memoria hacia el backend de métricas.

Características:
- FIFO global (no por target): los lotes se entregan en orden de encolado
- Lotes de como máximo 50 métricas por mensaje
- Reintento indefinido con backoff fijo; un mensaje sólo se elimina tras
  una entrega exitosa (at-least-once, en orden)
- Thread-safe para muchos productores y un único consumidor

El tamaño no está acotado: si el backend falla de forma sostenida la cola
crece sin límite y el mensaje de cabeza bloquea a los siguientes.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence

from ..config.models import TargetConfig
from ..interfaces import Sender
from ..metrics.models import Metric

logger = logging.getLogger(__name__)

CHUNK_SIZE = 50
IDLE_WAIT_SECONDS = 0.1
RETRY_BACKOFF_SECONDS = 0.1
DRAIN_LOG_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class QueueMessage:
    target_id: str
    metrics: tuple[Metric, ...]


class NoopSender:
    """Sender que descarta todo (cola sin backend configurado)."""

    def send(self, host_id: str, metrics: Sequence[Metric]) -> None:
        return None


def chunked(metrics: Sequence[Metric], size: int = CHUNK_SIZE) -> List[tuple[Metric, ...]]:
    return [tuple(metrics[i:i + size]) for i in range(0, len(metrics), size)]


class SendQueue:
    """Pipeline de entrega ordenado con reintento hasta el éxito.

    Uso:
        queue = SendQueue(sender)
        threading.Thread(target=queue.serve, daemon=True).start()

        # Productores (tickers)
        queue.enqueue(host_id, metrics)

        # Al apagar: drena hasta vaciar o vencer el plazo
        queue.shutdown(timeout=60)
    """

    def __init__(
        self,
        sender: Optional[Sender] = None,
        idle_wait: float = IDLE_WAIT_SECONDS,
        retry_backoff: float = RETRY_BACKOFF_SECONDS,
    ):
        self._sender = sender if sender is not None else NoopSender()
        self._idle_wait = idle_wait
        self._retry_backoff = retry_backoff

        self._messages: Deque[QueueMessage] = deque()
        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)

        self._stop_event = threading.Event()
        self._started = threading.Event()
        self._exited = threading.Event()
        self._serving = False
        self._is_shutdown = False

        # Métricas
        self._enqueued = 0
        self._delivered = 0
        self._failed_attempts = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    # ------------------------------------------------------------------
    # productores
    # ------------------------------------------------------------------

    def enqueue(self, target_id: str, metrics: Sequence[Metric]) -> None:
        """Divide en lotes de ``CHUNK_SIZE`` y los agrega al final de la cola.

        Un lote demasiado grande podría fallar siempre; por eso se trocea.
        """
        chunks = chunked(list(metrics))
        if not chunks:
            return
        with self._lock:
            for chunk in chunks:
                self._messages.append(QueueMessage(target_id=target_id, metrics=chunk))
            self._enqueued += len(chunks)
            self._changed.notify_all()

    # ------------------------------------------------------------------
    # consumidor
    # ------------------------------------------------------------------

    def _peek(self) -> Optional[QueueMessage]:
        with self._lock:
            return self._messages[0] if self._messages else None

    def _remove_head(self, message: QueueMessage) -> None:
        with self._lock:
            # Sólo el consumidor elimina: la cabeza sigue siendo ``message``.
            if self._messages and self._messages[0] is message:
                self._messages.popleft()
            self._delivered += 1
            self._changed.notify_all()

    def serve(self) -> None:
        """Bucle consumidor exclusivo. Bloquea hasta ``shutdown``."""
        with self._lock:
            if self._is_shutdown or self._serving:
                return
            self._serving = True
        self._started.set()

        logger.info("[QUEUE] Serve started")
        try:
            while not self._stop_event.is_set():
                message = self._peek()
                if message is None:
                    self._stop_event.wait(self._idle_wait)
                    continue

                try:
                    self._sender.send(message.target_id, message.metrics)
                except Exception as e:
                    with self._lock:
                        self._failed_attempts += 1
                    logger.warning(
                        "[QUEUE] failed post host=%s metrics=%d err=%s",
                        message.target_id, len(message.metrics), e,
                    )
                    self._stop_event.wait(self._retry_backoff)
                    continue

                self._remove_head(message)
        finally:
            self._exited.set()
            logger.debug("[QUEUE] Serve stopped")

    def wait_serving(self, timeout: Optional[float] = None) -> bool:
        """Espera a que el consumidor haya arrancado.

        Helper para tests: en producción ``enqueue`` no depende de esto.
        """
        return self._started.wait(timeout)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Drena la cola (hasta vaciarla o vencer ``timeout``) y detiene ``serve``.

        Idempotente: llamadas concurrentes colapsan en una sola ejecución.
        """
        with self._lock:
            if self._is_shutdown:
                return
            self._is_shutdown = True
            serving = self._serving

        deadline = None if timeout is None else time.monotonic() + timeout

        if serving:
            last_log: Optional[float] = None
            with self._lock:
                while self._messages:
                    remaining = DRAIN_LOG_INTERVAL_SECONDS
                    if deadline is not None:
                        remaining = min(remaining, deadline - time.monotonic())
                        if remaining <= 0:
                            logger.warning(
                                "[QUEUE] shutdown deadline reached, dropping remain=%d",
                                len(self._messages),
                            )
                            break
                    now = time.monotonic()
                    if last_log is None or now - last_log >= DRAIN_LOG_INTERVAL_SECONDS:
                        logger.info("[QUEUE] draining... remain=%d", len(self._messages))
                        last_log = now
                    self._changed.wait(remaining)

        self._stop_event.set()
        if serving:
            self._exited.wait()
        logger.info("[QUEUE] Stopped. %s", self.stats)

    # ------------------------------------------------------------------
    # Service
    # ------------------------------------------------------------------

    def reload(self, conf: TargetConfig) -> None:
        # La cola no tiene identidad por target.
        return None

    @property
    def target_id(self) -> str:
        return ""

    @property
    def alive(self) -> bool:
        with self._lock:
            return not self._is_shutdown

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "queue_depth": len(self._messages),
                "enqueued": self._enqueued,
                "delivered": self._delivered,
                "failed_attempts": self._failed_attempts,
            }
