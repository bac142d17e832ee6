"""Notificaciones de estado al supervisor de procesos (systemd).

Best-effort: sin cysystemd o fuera de systemd sólo se loguea.
"""

from __future__ import annotations

import logging
import os

try:
    from cysystemd.daemon import Notification, notify
    SYSTEMD_AVAILABLE = True
except ImportError:
    SYSTEMD_AVAILABLE = False

logger = logging.getLogger(__name__)


class ReadinessNotifier:
    def __init__(self, enabled: bool | None = None):
        if enabled is None:
            enabled = SYSTEMD_AVAILABLE and bool(os.getenv("NOTIFY_SOCKET"))
        self.enabled = enabled and SYSTEMD_AVAILABLE
        if not SYSTEMD_AVAILABLE:
            logger.debug("[SDNOTIFY] cysystemd not installed, notifications disabled")

    def _send(self, state: str) -> None:
        if not self.enabled:
            logger.debug("[SDNOTIFY] skip %s", state)
            return
        try:
            notify(getattr(Notification, state))
        except Exception as e:
            logger.warning("[SDNOTIFY] failed send sd_notify state=%s err=%s", state, e)

    def ready(self) -> None:
        self._send("READY")

    def reloading(self) -> None:
        self._send("RELOADING")

    def stopping(self) -> None:
        self._send("STOPPING")
