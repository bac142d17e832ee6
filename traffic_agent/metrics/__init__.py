"""Conversión de lecturas crudas a métricas.

Módulos:
- models: Metric
- converter: MetricDeltaConverter (contadores acumulativos → tasa/diff)
- custom: CustomCounterConverter (valores custom → métricas)
"""

from .converter import MetricDeltaConverter, escape_interface_name, wrap_diff
from .custom import CustomCounterConverter
from .models import Metric

__all__ = [
    "CustomCounterConverter",
    "Metric",
    "MetricDeltaConverter",
    "escape_interface_name",
    "wrap_diff",
]
