from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Metric:
    """Unidad lista para enviar al backend de métricas."""
    name: str
    time: int  # unix seconds
    value: Union[int, float]

    def to_payload(self, host_id: str) -> dict:
        return {
            "hostId": host_id,
            "name": self.name,
            "time": self.time,
            "value": self.value,
        }
