"""Supervisor: dueño de todos los servicios del proceso.

Responsabilidades:
- Arranque: SendQueue + dos Workers por target (metadata y métricas),
  lanzados de forma escalonada
- Recarga: reconciliación en caliente contra la configuración nueva
- Apagado: latch atómico y shutdown concurrente con plazo compartido

El arranque corre en su propio thread para que las señales se atiendan
durante el escalonamiento. La recarga sólo se acepta una vez terminado
el arranque, así el conjunto de servicios tiene un único escritor a la
vez; el lock protege las lecturas desde el thread de apagado.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..config import Config, ConfigError, TargetConfig, load_config
from ..delivery import SendQueue
from ..interfaces import Service
from ..snmp import SnmpSessionFactory
from ..ticker import MetadataTicker, MetricTicker
from ..ticker.metric import CollectorFactory
from ..worker import Worker
from .readiness import ReadinessNotifier
from .stagger import (
    DEFAULT_LIMIT_SECONDS,
    DEFAULT_MAX_INTERVAL_SECONDS,
    DEFAULT_MIN_INTERVAL_SECONDS,
    compute_stagger,
)

logger = logging.getLogger(__name__)

METRIC_PERIOD_SECONDS = 60.0
METADATA_PERIOD_SECONDS = 3 * 60 * 60.0
SHUTDOWN_TIMEOUT_SECONDS = 60.0


@dataclass
class ReloadResult:
    reloaded: List[str] = field(default_factory=list)
    started: List[str] = field(default_factory=list)
    stopped: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Supervisor:
    def __init__(
        self,
        config_path: str,
        config: Config,
        client,
        sessions: Optional[SnmpSessionFactory] = None,
        readiness: Optional[ReadinessNotifier] = None,
        loader: Callable[[str], Config] = load_config,
        metric_period: float = METRIC_PERIOD_SECONDS,
        metadata_period: float = METADATA_PERIOD_SECONDS,
        shutdown_timeout: float = SHUTDOWN_TIMEOUT_SECONDS,
        stagger_limit: float = DEFAULT_LIMIT_SECONDS,
        stagger_min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        stagger_max_interval: float = DEFAULT_MAX_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        queue: Optional[SendQueue] = None,
        collector_factory: Optional[CollectorFactory] = None,
    ):
        self._config_path = config_path
        self._config = config
        self._client = client
        self._sessions = sessions or SnmpSessionFactory()
        self._collector_factory = collector_factory
        self._readiness = readiness or ReadinessNotifier()
        self._loader = loader

        self._metric_period = metric_period
        self._metadata_period = metadata_period
        self._shutdown_timeout = shutdown_timeout
        self._stagger_limit = stagger_limit
        self._stagger_min = stagger_min_interval
        self._stagger_max = stagger_max_interval
        self._sleep = sleep

        self._queue = queue if queue is not None else SendQueue(client)
        self._services: List[Service] = []
        self._lock = threading.Lock()

        self._shutdown_started = False
        self._started = threading.Event()
        self._done = threading.Event()

    # ------------------------------------------------------------------
    # consultas
    # ------------------------------------------------------------------

    @property
    def queue(self) -> SendQueue:
        return self._queue

    @property
    def services(self) -> List[Service]:
        with self._lock:
            return list(self._services)

    @property
    def shutting_down(self) -> bool:
        with self._lock:
            return self._shutdown_started

    @property
    def started(self) -> bool:
        return self._started.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def alive_target_ids(self) -> set[str]:
        return {s.target_id for s in self.services if s.alive and s.target_id}

    # ------------------------------------------------------------------
    # construcción
    # ------------------------------------------------------------------

    def _new_workers(self, conf: TargetConfig) -> List[Worker]:
        return [
            Worker(
                MetadataTicker(conf, self._client, self._sessions, self._collector_factory),
                self._metadata_period,
            ),
            Worker(
                MetricTicker(conf, self._queue, self._sessions, self._collector_factory),
                self._metric_period,
            ),
        ]

    def _push_graph_defs(self, conf: TargetConfig) -> None:
        if not conf.custom_graph_defs:
            return
        try:
            self._client.create_graph_defs(conf.custom_graph_defs)
        except Exception as e:
            logger.warning("[SUPERVISOR] failed create graph defs target=%s err=%s", conf.target_id, e)

    def _run(self, service) -> None:
        try:
            service.serve()
        except Exception:
            logger.exception("[SUPERVISOR] failed serve target=%s", service.target_id)

    def _launch(self, service) -> None:
        name = f"svc-{service.target_id or 'queue'}"
        threading.Thread(target=self._run, args=(service,), name=name, daemon=True).start()

    # ------------------------------------------------------------------
    # ciclo de vida
    # ------------------------------------------------------------------

    def start(self) -> None:
        services: List[Service] = [self._queue]
        for conf in self._config.targets:
            self._push_graph_defs(conf)
            services.extend(self._new_workers(conf))

        with self._lock:
            self._services.extend(services)

        plan = compute_stagger(len(services), self._stagger_limit, self._stagger_min, self._stagger_max)
        logger.info(
            "[SUPERVISOR] starting services=%d batches=%d wait=%.3fs",
            len(services), len(plan.batches), plan.wait,
        )
        batches = plan.split(services)
        for i, batch in enumerate(batches):
            if self.shutting_down:
                logger.info("[SUPERVISOR] shutdown requested, abort start")
                return
            for service in batch:
                self._launch(service)
            if i < len(batches) - 1:
                self._sleep(plan.wait)

        self._started.set()
        self._readiness.ready()
        logger.info("[SUPERVISOR] initialized. targets=%d", len(self._config.targets))

    def reload(self) -> ReloadResult:
        """Relee la configuración y reconcilia. Sólo desde el thread de control."""
        self._readiness.reloading()
        try:
            try:
                new_config = self._loader(self._config_path)
            except ConfigError as e:
                logger.warning("[SUPERVISOR] failed parse config err=%s", e)
                return ReloadResult(error=str(e))
            result = self.reconcile(new_config.targets)
            self._config = new_config
            return result
        finally:
            self._readiness.ready()

    def reconcile(self, targets: Sequence[TargetConfig]) -> ReloadResult:
        result = ReloadResult()
        alive_ids = self.alive_target_ids()
        new_ids = {t.target_id for t in targets}

        for conf in targets:
            target_id = conf.target_id
            if target_id in alive_ids:
                for service in self.services:
                    if service.alive and service.target_id == target_id:
                        service.reload(conf)
                if target_id not in result.reloaded:
                    logger.info("[SUPERVISOR] reload target=%s", target_id)
                    result.reloaded.append(target_id)
                continue

            self._push_graph_defs(conf)
            workers = self._new_workers(conf)
            with self._lock:
                self._services.extend(workers)
            for worker in workers:
                self._launch(worker)
            alive_ids.add(target_id)
            logger.info("[SUPERVISOR] serve by reload target=%s", target_id)
            result.started.append(target_id)

        for service in self.services:
            target_id = service.target_id
            if not service.alive or not target_id or target_id in new_ids:
                continue
            logger.info("[SUPERVISOR] shutdown by reload target=%s", target_id)
            threading.Thread(target=service.shutdown, name=f"stop-{target_id}", daemon=True).start()
            if target_id not in result.stopped:
                result.stopped.append(target_id)

        with self._lock:
            # Los servicios ya detenidos no vuelven a participar de la reconciliación.
            self._services = [s for s in self._services if s.alive or s.target_id in result.stopped]

        return result

    def shutdown(self) -> bool:
        """Apaga todos los servicios en paralelo con un plazo compartido.

        Idempotente. Vencer el plazo no es un error: se registra y el apagado
        termina igual. Devuelve False sólo si el shutdown de algún servicio
        lanzó una excepción.
        """
        with self._lock:
            if self._shutdown_started:
                return True
            self._shutdown_started = True
            services = list(self._services)

        self._readiness.stopping()
        logger.info("[SUPERVISOR] shutdown... services=%d timeout=%.0fs", len(services), self._shutdown_timeout)

        ok = True
        if services:
            executor = ThreadPoolExecutor(max_workers=len(services), thread_name_prefix="shutdown")
            try:
                futures = [executor.submit(s.shutdown, self._shutdown_timeout) for s in services]
                done, pending = wait_futures(futures, timeout=self._shutdown_timeout)
                if pending:
                    logger.warning("[SUPERVISOR] shutdown deadline reached pending=%d", len(pending))
                for future in done:
                    error = future.exception()
                    if error is not None:
                        ok = False
                        logger.error("[SUPERVISOR] failed shutdown err=%s", error)
            finally:
                executor.shutdown(wait=False, cancel_futures=True)

        self._done.set()
        logger.info("[SUPERVISOR] shutdown complete ok=%s", ok)
        return ok

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)
