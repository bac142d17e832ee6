"""Conversión de contadores acumulativos a métricas por intervalo.

Compara cada snapshot con el del ciclo anterior del MISMO ticker:
- Contadores de bytes → tasa por segundo (``interface.<if>.rxBytes.delta``)
- Resto de contadores → diferencia cruda (``custom.interface.<mib>.<if>``)

Maneja el desborde (wraparound) de contadores de 32 y 64 bits.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from ..collector.models import RawSample
from .models import Metric

logger = logging.getLogger(__name__)

MAX_UINT32 = 2**32 - 1
MAX_UINT64 = 2**64 - 1

# Contadores legacy de 32 bits (ifTable)
COUNTERS_32BIT = frozenset({"ifInOctets", "ifOutOctets"})

# Contadores de bytes → se emiten como tasa
RATE_COUNTERS = frozenset({"ifInOctets", "ifOutOctets", "ifHCInOctets", "ifHCOutOctets"})
RECEIVE_COUNTERS = frozenset({"ifInOctets", "ifHCInOctets"})


def wrap_diff(prev: int, curr: int, ceiling: int) -> int:
    """Diferencia entre dos lecturas de un contador monotónico.

    Si ``curr < prev`` el contador dio la vuelta: ``ceiling - prev + curr``.
    """
    if curr < prev:
        return ceiling - prev + curr
    return curr - prev


def overflow_ceiling(counter: str) -> int:
    if counter in COUNTERS_32BIT:
        return MAX_UINT32
    return MAX_UINT64


def is_rate_counter(counter: str) -> bool:
    return counter in RATE_COUNTERS


def is_receive_counter(counter: str) -> bool:
    return counter in RECEIVE_COUNTERS


def escape_interface_name(if_name: str) -> str:
    """Nombre de interfaz apto para un nombre de métrica."""
    return if_name.replace("/", "-").replace(".", "_").replace(" ", "")


def metric_name(sample: RawSample) -> str:
    if_name = escape_interface_name(sample.if_name)
    if is_rate_counter(sample.counter):
        direction = "rxBytes" if is_receive_counter(sample.counter) else "txBytes"
        return f"interface.{if_name}.{direction}.delta"
    return f"custom.interface.{sample.counter}.{if_name}"


def convert(
    current: Sequence[RawSample],
    previous: Sequence[RawSample],
    now: float,
    last_execution: float,
) -> List[Metric]:
    """Convierte dos snapshots consecutivos en métricas.

    Las muestras sin línea base (interfaz recién aparecida) se omiten: emitir
    una diferencia contra 0 generaría un pico falso.
    """
    baseline: Dict[Tuple[int, str], int] = {s.key: s.value for s in previous}
    elapsed = int(now - last_execution)
    timestamp = int(now)

    metrics: List[Metric] = []
    for sample in current:
        prev_value = baseline.get(sample.key)
        if prev_value is None:
            continue

        value = wrap_diff(prev_value, sample.value, overflow_ceiling(sample.counter))

        if is_rate_counter(sample.counter):
            if elapsed <= 0:
                logger.debug("[CONVERT] skip rate %s: elapsed=%d", sample.counter, elapsed)
                continue
            value //= elapsed

        metrics.append(Metric(name=metric_name(sample), time=timestamp, value=value))
    return metrics


class MetricDeltaConverter:
    """Conversor con estado: guarda el snapshot anterior de un único target.

    El primer ``convert`` sólo fija la línea base y devuelve ``[]``. Tras
    cada llamada la línea base se reemplaza siempre por el snapshot actual.
    """

    def __init__(self):
        self._prev_samples: Optional[List[RawSample]] = None
        self._last_execution: float = 0.0

    @property
    def has_baseline(self) -> bool:
        return bool(self._prev_samples)

    def convert(self, current: Sequence[RawSample], now: Optional[float] = None) -> List[Metric]:
        if now is None:
            now = time.time()

        try:
            if not self._prev_samples:
                return []
            return convert(current, self._prev_samples, now, self._last_execution)
        finally:
            self._prev_samples = list(current)
            self._last_execution = now
