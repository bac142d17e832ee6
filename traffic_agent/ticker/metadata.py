"""Ticker de metadata: inventario de interfaces → actualización del host."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..collector import InterfaceInfo
from ..config.models import TargetConfig
from ..interfaces import MetadataUpdater
from ..snmp import SnmpSessionFactory
from .metric import CollectorFactory, default_collector_factory
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class MetadataTicker:
    """Publica el inventario de interfaces sólo cuando cambia.

    El inventario cacheado se compara por igualdad profunda; si no hubo
    cambios no se llama a la API.
    """

    def __init__(
        self,
        conf: TargetConfig,
        updater: MetadataUpdater,
        sessions: Optional[SnmpSessionFactory] = None,
        collector_factory: Optional[CollectorFactory] = None,
    ):
        self._target_id = conf.target_id
        self._updater = updater
        self._collector_factory = collector_factory or default_collector_factory(sessions)

        self._lock = ReadWriteLock()
        self._conf = conf
        self._collector = self._collector_factory(conf)
        self._cache: Optional[List[InterfaceInfo]] = None

    @property
    def target_id(self) -> str:
        return self._target_id

    def tick(self) -> None:
        with self._lock.read():
            conf = self._conf
            try:
                interfaces = self._collector.collect_interface_inventory()
            except Exception as e:
                # Se continúa con inventario vacío.
                logger.warning("[METADATA] failed fetch interfaces target=%s err=%s", self._target_id, e)
                interfaces = []

            if self._cache is not None and interfaces == self._cache:
                logger.debug("[METADATA] skip update metadata target=%s", self._target_id)
                return
            self._cache = list(interfaces)

            try:
                self._updater.update_host(
                    conf.host_id,
                    conf.snmp.host,
                    conf.display_hostname,
                    interfaces,
                )
            except Exception as e:
                logger.warning("[METADATA] failed update host target=%s err=%s", self._target_id, e)

    def reload(self, conf: TargetConfig) -> None:
        with self._lock.write():
            self._conf = conf
            self._collector = self._collector_factory(conf)
        logger.info("[METADATA] reloaded target=%s", self._target_id)
