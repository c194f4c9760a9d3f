from .state import (
    BootImageState,
    BootImageStateStore,
    Outcome,
    PassPhase,
    ResourceKey,
    ResourceStats,
)
from .guard import DriftGuard
from .reporter import ConditionReporter, DEGRADED, PROGRESSING
from .reconciler import PassResult, Reconciler
from .triggers import EventTrigger

__all__ = [
    "BootImageState",
    "BootImageStateStore",
    "Outcome",
    "PassPhase",
    "ResourceKey",
    "ResourceStats",
    "DriftGuard",
    "ConditionReporter",
    "DEGRADED",
    "PROGRESSING",
    "PassResult",
    "Reconciler",
    "EventTrigger",
]
