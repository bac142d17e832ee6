"""Orquestación del proceso: arranque escalonado, recarga y apagado."""

from .control import ControlEvent, ControlLoop, SignalEventSource
from .readiness import ReadinessNotifier
from .stagger import StaggerPlan, compute_stagger
from .supervisor import ReloadResult, Supervisor

__all__ = [
    "ControlEvent",
    "ControlLoop",
    "ReadinessNotifier",
    "ReloadResult",
    "SignalEventSource",
    "StaggerPlan",
    "Supervisor",
    "compute_stagger",
]
