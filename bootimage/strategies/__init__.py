from typing import Dict

from bootimage.common.models.category import Category
from bootimage.types.settings import Settings
from .base import BootImageStrategy
from .mapi import MAPIMachineSetStrategy
from .capi import CAPIMachineDeploymentStrategy, CAPIMachineSetStrategy, CAPITemplateStrategy


def default_strategies(settings: Settings) -> Dict[Category, BootImageStrategy]:
    """Return the strategies for every category enabled in ``settings``."""
    strategies: Dict[Category, BootImageStrategy] = {
        Category.MAPI_MACHINE_SET: MAPIMachineSetStrategy(settings),
    }
    if settings.capi_enabled:
        strategies[Category.CAPI_MACHINE_SET] = CAPIMachineSetStrategy(settings)
        strategies[Category.CAPI_MACHINE_DEPLOYMENT] = CAPIMachineDeploymentStrategy(settings)
    return strategies


__all__ = [
    "BootImageStrategy",
    "MAPIMachineSetStrategy",
    "CAPITemplateStrategy",
    "CAPIMachineSetStrategy",
    "CAPIMachineDeploymentStrategy",
    "default_strategies",
]
