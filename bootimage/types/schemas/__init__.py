from .golden import BootImageStreamSchema, GoldenConfigurationSchema
from .machineconfiguration import (
    FeatureConfigurationSchema,
    MachineManagerSchema,
    MachineManagerSelectionSchema,
    MachineResourceSelectorSchema,
    ManagedBootImagesSchema,
    PartialSelectionSchema,
)

__all__ = [
    "BootImageStreamSchema",
    "GoldenConfigurationSchema",
    "FeatureConfigurationSchema",
    "MachineManagerSchema",
    "MachineManagerSelectionSchema",
    "MachineResourceSelectorSchema",
    "ManagedBootImagesSchema",
    "PartialSelectionSchema",
]
