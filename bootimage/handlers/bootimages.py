import kopf
from bootimage.controller.triggers import DELETED
from bootimage.resources.cache import CONFIG_MAPS
from bootimage.types.settings import BOOT_IMAGES_CONFIG_MAP_NAME, MCO_NAMESPACE


def is_golden_config_map(name, namespace, **_) -> bool:
    return name == BOOT_IMAGES_CONFIG_MAP_NAME and namespace == MCO_NAMESPACE


@kopf.on.event("", "v1", "configmaps", when=is_golden_config_map)
async def boot_images_config_map_event(type, body, memo, logger, **kwargs):
    """Golden boot images changed: every enrolled resource may need a new image."""
    if type == DELETED:
        memo.store.cache.delete(CONFIG_MAPS, body)
        logger.warning("Golden boot images ConfigMap deleted")
    else:
        memo.store.cache.upsert(CONFIG_MAPS, body)
    reason = memo.trigger.on_config_map_event(type, body)
    if reason:
        logger.debug(f"Triggered {reason}")
