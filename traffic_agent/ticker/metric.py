"""Ticker de métricas: un ciclo de polling → conversión → encolado."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..collector import Collector
from ..config.models import TargetConfig
from ..interfaces import CollectorProtocol, Enqueuer
from ..metrics import CustomCounterConverter, MetricDeltaConverter
from ..snmp import SnmpSessionFactory
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

CollectorFactory = Callable[[TargetConfig], CollectorProtocol]


def default_collector_factory(sessions: Optional[SnmpSessionFactory]) -> CollectorFactory:
    def factory(conf: TargetConfig):
        return Collector(conf, sessions)
    return factory


class MetricTicker:
    """Recolecta contadores de interfaz y custom de un target y los encola.

    Cada ``tick`` tiene dos pasos independientes: un fallo en los contadores
    de interfaz no impide enviar los custom y viceversa.

    En ``reload`` se reemplazan host_id, collector y conversor custom; el
    ``MetricDeltaConverter`` se conserva para no perder la línea base.
    """

    def __init__(
        self,
        conf: TargetConfig,
        queue: Enqueuer,
        sessions: Optional[SnmpSessionFactory] = None,
        collector_factory: Optional[CollectorFactory] = None,
    ):
        self._target_id = conf.target_id
        self._queue = queue
        self._collector_factory = collector_factory or default_collector_factory(sessions)

        self._lock = ReadWriteLock()
        self._host_id = conf.host_id
        self._collector = self._collector_factory(conf)
        self._converter = MetricDeltaConverter()
        self._custom_converter = CustomCounterConverter(conf.custom_metric_oids)

    @property
    def target_id(self) -> str:
        return self._target_id

    def tick(self) -> None:
        with self._lock.read():
            try:
                self._do()
            except Exception as e:
                logger.warning("[METRIC] failed collect target=%s err=%s", self._target_id, e)

            try:
                self._do_custom()
            except Exception as e:
                logger.warning("[METRIC] failed collect custom target=%s err=%s", self._target_id, e)

    def _do(self) -> None:
        samples = self._collector.collect()
        metrics = self._converter.convert(samples)
        if not metrics:
            return
        self._queue.enqueue(self._host_id, metrics)

    def _do_custom(self) -> None:
        values = self._collector.collect_custom_counters()
        if not values:
            return
        metrics = self._custom_converter.convert(values)
        if not metrics:
            return
        self._queue.enqueue(self._host_id, metrics)

    def reload(self, conf: TargetConfig) -> None:
        with self._lock.write():
            self._host_id = conf.host_id
            self._custom_converter = CustomCounterConverter(conf.custom_metric_oids)
            self._collector = self._collector_factory(conf)
        logger.info("[METRIC] reloaded target=%s", self._target_id)
