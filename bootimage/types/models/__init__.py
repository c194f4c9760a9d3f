from .golden import BootImageStream, GoldenConfiguration
from .machineconfiguration import (
    FeatureConfiguration,
    MachineManager,
    MachineManagerSelection,
    MachineResourceSelector,
    ManagedBootImages,
    PartialSelection,
    SELECTION_ALL,
    SELECTION_NONE,
    SELECTION_PARTIAL,
)

__all__ = [
    "BootImageStream",
    "GoldenConfiguration",
    "FeatureConfiguration",
    "MachineManager",
    "MachineManagerSelection",
    "MachineResourceSelector",
    "ManagedBootImages",
    "PartialSelection",
    "SELECTION_ALL",
    "SELECTION_NONE",
    "SELECTION_PARTIAL",
]
