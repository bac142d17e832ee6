"""Bucle de control: traduce eventos de proceso en acciones del Supervisor.

Las señales del SO se convierten en ``ControlEvent`` y se consumen desde un
único thread (el principal). El arranque del Supervisor corre aparte,
así una señal durante el escalonamiento lo interrumpe.
"""

from __future__ import annotations

import enum
import logging
import os
import queue
import signal
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

FORCE_EXIT_CODE = 2


class ControlEvent(enum.Enum):
    INTERRUPT = "interrupt"   # graceful; el segundo fuerza la salida
    TERMINATE = "terminate"   # graceful
    RELOAD = "reload"
    QUIT = "quit"             # salida inmediata


def _hard_exit(code: int) -> None:
    logging.shutdown()
    os._exit(code)


class ControlLoop:
    def __init__(
        self,
        supervisor,
        events: Optional[queue.SimpleQueue] = None,
        exit_func: Callable[[int], None] = _hard_exit,
        poll_interval: float = 0.5,
    ):
        self._supervisor = supervisor
        self.events = events if events is not None else queue.SimpleQueue()
        self._exit = exit_func
        self._poll_interval = poll_interval
        self._interrupts = 0
        self._shutdown_thread: Optional[threading.Thread] = None

    def submit(self, event: ControlEvent) -> None:
        self.events.put(event)

    def run(self, startup: Optional[Callable[[], None]] = None) -> None:
        """Bloquea hasta que el Supervisor termine de apagarse.

        ``startup`` (p.ej. ``Supervisor.start``) corre en un thread aparte
        para que las señales se atiendan mientras dura el escalonamiento.
        """
        if startup is not None:
            threading.Thread(target=self._startup, args=(startup,), name="startup", daemon=True).start()

        while not self._supervisor.done:
            try:
                event = self.events.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            self.handle(event)

        if self._shutdown_thread is not None:
            self._shutdown_thread.join()

    def _startup(self, startup: Callable[[], None]) -> None:
        try:
            startup()
        except Exception:
            logger.exception("[CONTROL] failed startup, shutdown")
            self.submit(ControlEvent.TERMINATE)

    def handle(self, event: ControlEvent) -> None:
        if event is ControlEvent.QUIT:
            logger.info("[CONTROL] receive signal=SIGQUIT, exit")
            self._exit(FORCE_EXIT_CODE)
            return

        if event is ControlEvent.INTERRUPT:
            self._interrupts += 1
            if self._interrupts > 1:
                logger.info("[CONTROL] force shutdown signal=SIGINT")
                self._exit(FORCE_EXIT_CODE)
                return
            logger.info("[CONTROL] shutdown... signal=SIGINT")
            self._start_shutdown()
            return

        if event is ControlEvent.TERMINATE:
            logger.info("[CONTROL] receive signal=SIGTERM")
            self._start_shutdown()
            return

        if event is ControlEvent.RELOAD:
            logger.info("[CONTROL] receive signal=SIGHUP")
            if self._supervisor.shutting_down:
                logger.info("[CONTROL] shutdown in progress, skip reload")
                return
            if not self._supervisor.started:
                logger.info("[CONTROL] startup in progress, skip reload")
                return
            result = self._supervisor.reload()
            logger.info(
                "[CONTROL] reload done reloaded=%d started=%d stopped=%d",
                len(result.reloaded), len(result.started), len(result.stopped),
            )

    def _start_shutdown(self) -> None:
        if self._shutdown_thread is not None:
            return
        self._shutdown_thread = threading.Thread(target=self._shutdown, name="shutdown", daemon=True)
        self._shutdown_thread.start()

    def _shutdown(self) -> None:
        if not self._supervisor.shutdown():
            logger.error("[CONTROL] failed shutdown, exit")
            self._exit(FORCE_EXIT_CODE)


class SignalEventSource:
    """Publica las señales del SO como ``ControlEvent`` en un ControlLoop.

    ``install`` debe llamarse desde el thread principal.
    """

    SIGNAL_EVENTS = {
        signal.SIGINT: ControlEvent.INTERRUPT,
        signal.SIGTERM: ControlEvent.TERMINATE,
        signal.SIGHUP: ControlEvent.RELOAD,
        signal.SIGQUIT: ControlEvent.QUIT,
    }

    def __init__(self, loop: ControlLoop):
        self._loop = loop

    def _handler(self, signum, frame) -> None:
        # SimpleQueue.put es reentrante: seguro dentro de un handler de señal.
        self._loop.submit(self.SIGNAL_EVENTS[signum])

    def install(self) -> None:
        signal.signal(signal.SIGPIPE, signal.SIG_IGN)
        for signum in self.SIGNAL_EVENTS:
            signal.signal(signum, self._handler)
