"""Interfaces mínimas entre componentes.

El núcleo (Worker, SendQueue, Supervisor) sólo depende de estos
protocolos, no de las implementaciones concretas de SNMP o Mackerel.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

from .collector.models import InterfaceInfo, RawSample
from .config.models import GraphDef, TargetConfig
from .metrics.models import Metric


class Service(Protocol):
    """Capacidad común de todo lo que corre en su propio thread.

    Implementaciones: Worker (ticker de métricas o de metadata) y SendQueue.
    """

    def serve(self) -> None:
        """Bucle bloqueante hasta que se llame a ``shutdown``."""
        ...

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Idempotente. Retorna cuando ``serve`` terminó (o venció el plazo)."""
        ...

    @property
    def target_id(self) -> str:
        ...

    def reload(self, conf: TargetConfig) -> None:
        ...

    @property
    def alive(self) -> bool:
        ...


class Ticker(Protocol):
    """Un ciclo de polling de un target."""

    def tick(self) -> None:
        ...

    def reload(self, conf: TargetConfig) -> None:
        ...

    @property
    def target_id(self) -> str:
        ...


class CollectorProtocol(Protocol):
    def collect(self) -> List[RawSample]:
        ...

    def collect_custom_counters(self) -> Dict[str, float]:
        ...

    def collect_interface_inventory(self) -> List[InterfaceInfo]:
        ...


class Enqueuer(Protocol):
    def enqueue(self, target_id: str, metrics: Sequence[Metric]) -> None:
        ...


class Sender(Protocol):
    def send(self, host_id: str, metrics: Sequence[Metric]) -> None:
        """Entrega un lote. Lanza una excepción si falla."""
        ...


class MetadataUpdater(Protocol):
    def update_host(
        self,
        host_id: str,
        host_addr: str,
        hostname: str,
        interfaces: Sequence[InterfaceInfo],
    ) -> None:
        ...

    def create_graph_defs(self, graph_defs: Sequence[GraphDef]) -> None:
        ...
