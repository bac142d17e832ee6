"""Escalonamiento del arranque de servicios.

Reparte el establecimiento de conexiones SNMP dentro de una ventana
(``limit``) para no abrir todas las sesiones a la vez.

Ejemplos con los valores por defecto (55s, 30ms, 300ms):
- 10 servicios → 10 lotes de 1, 300ms entre lotes (55/10 se acota a 300ms)
- 500 servicios → 500 lotes de 1, 110ms entre lotes
- 4000 servicios → 1833 lotes de 2 o 3, 30ms entre lotes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT_SECONDS = 55.0
DEFAULT_MIN_INTERVAL_SECONDS = 0.03
DEFAULT_MAX_INTERVAL_SECONDS = 0.3


@dataclass(frozen=True)
class StaggerPlan:
    # tamaño de cada lote, en orden de lanzamiento
    batches: tuple[int, ...]
    # espera entre lotes consecutivos (segundos)
    wait: float

    @property
    def total(self) -> int:
        return sum(self.batches)

    def split(self, items: Sequence[T]) -> List[List[T]]:
        if len(items) != self.total:
            raise ValueError(f"plan covers {self.total} items, got {len(items)}")
        out: List[List[T]] = []
        start = 0
        for size in self.batches:
            out.append(list(items[start:start + size]))
            start += size
        return out


def compute_stagger(
    n: int,
    limit: float = DEFAULT_LIMIT_SECONDS,
    min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
    max_interval: float = DEFAULT_MAX_INTERVAL_SECONDS,
) -> StaggerPlan:
    if n <= 0:
        return StaggerPlan(batches=(), wait=0.0)
    if min_interval <= 0 or max_interval < min_interval:
        raise ValueError("invalid stagger interval bounds")

    wait = limit / n
    if wait >= min_interval:
        return StaggerPlan(batches=(1,) * n, wait=min(wait, max_interval))

    # Demasiados servicios para espaciarlos de a uno: lotes cada min_interval.
    # En milisegundos enteros: 0.3 / 0.1 en float da 2.999...
    batch_count = max(1, round(limit * 1000) // round(min_interval * 1000))
    batch_count = min(batch_count, n)
    size, remainder = divmod(n, batch_count)
    batches = tuple(size + 1 if i < remainder else size for i in range(batch_count))
    return StaggerPlan(batches=batches, wait=min_interval)
