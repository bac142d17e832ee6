"""Conversor sin estado para contadores personalizados (custom-mibs)."""

from __future__ import annotations

import time
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Metric


class CustomCounterConverter:
    """Mapea valores {oid: valor} a métricas por nombre configurado."""

    def __init__(self, metric_oids: Sequence[Tuple[str, str]]):
        # (nombre de métrica, oid)
        self._metric_oids = tuple(metric_oids)

    def convert(self, values: Dict[str, float], now: Optional[float] = None) -> List[Metric]:
        if now is None:
            now = time.time()
        timestamp = int(now)

        metrics: List[Metric] = []
        for name, oid in self._metric_oids:
            if oid not in values:
                continue
            metrics.append(Metric(name=name, time=timestamp, value=values[oid]))
        return metrics
