"""Tickers por target (un ciclo de trabajo por invocación)."""

from .metadata import MetadataTicker
from .metric import MetricTicker
from .rwlock import ReadWriteLock

__all__ = ["MetadataTicker", "MetricTicker", "ReadWriteLock"]
