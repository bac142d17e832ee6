from .collector import (
    Collector,
    collect_custom_values,
    collect_interface_inventory,
    collect_samples,
)
from .models import InterfaceInfo, RawSample

__all__ = [
    "Collector",
    "InterfaceInfo",
    "RawSample",
    "collect_custom_values",
    "collect_interface_inventory",
    "collect_samples",
]
