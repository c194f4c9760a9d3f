import kopf
from bootimage.controller.triggers import DELETED
from bootimage.resources.cache import MACHINE_CONFIGURATIONS
from bootimage.resources.store import (
    MACHINE_CONFIGURATION_GROUP,
    MACHINE_CONFIGURATION_PLURAL,
    MACHINE_CONFIGURATION_VERSION,
)
from bootimage.types.settings import MACHINE_CONFIGURATION_NAME


def is_cluster_configuration(name, **_) -> bool:
    return name == MACHINE_CONFIGURATION_NAME


@kopf.on.event(
    MACHINE_CONFIGURATION_GROUP,
    MACHINE_CONFIGURATION_VERSION,
    MACHINE_CONFIGURATION_PLURAL,
    when=is_cluster_configuration,
)
async def machine_configuration_event(type, body, memo, logger, **kwargs):
    """Enrollment may have changed: resources can join or leave the managed scope."""
    if type == DELETED:
        memo.store.cache.delete(MACHINE_CONFIGURATIONS, body)
    else:
        memo.store.cache.upsert(MACHINE_CONFIGURATIONS, body)
    reason = memo.trigger.on_machine_configuration_event(type, body)
    if reason:
        logger.debug(f"Triggered {reason}")
