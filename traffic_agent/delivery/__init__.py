"""Entrega de métricas y metadata a Mackerel.

Módulos:
- send_queue: SendQueue (FIFO con reintento, lotes de 50)
- mackerel: MackerelClient (requests) + MackerelAPIError
"""

from .mackerel import MackerelAPIError, MackerelClient
from .send_queue import CHUNK_SIZE, NoopSender, SendQueue

__all__ = [
    "CHUNK_SIZE",
    "MackerelAPIError",
    "MackerelClient",
    "NoopSender",
    "SendQueue",
]
