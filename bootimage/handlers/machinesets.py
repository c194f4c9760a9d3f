import kopf
import logging
from typing import Optional
from bootimage.common.models.category import Category
from bootimage.controller.triggers import DELETED
from bootimage.types.settings import CAPI_ENABLED, CAPI_NAMESPACE, MACHINE_API_NAMESPACE


class EventLogFilter(logging.Filter):
    def filter(self, record):
        """Watch event handler logs are noisy so we filter them out."""
        msg = record.getMessage()
        return not (msg.startswith("Handler '") and "_event'" in msg and "succeeded" in msg)


kopf_logger = logging.getLogger("kopf.objects")
kopf_logger.addFilter(EventLogFilter())


def in_namespace(expected: str, enabled: bool = True):
    def when(namespace, **_) -> bool:
        return enabled and namespace == expected

    return when


def handle_event(category: Category, event_type: Optional[str], body, memo: kopf.Memo) -> Optional[str]:
    """Keep the cache current, then let the trigger decide on a pass."""
    if event_type == DELETED:
        memo.store.cache.delete(category.cache_key, body)
    else:
        memo.store.cache.upsert(category.cache_key, body)
    return memo.trigger.on_machine_resource_event(category, event_type, body)


@kopf.on.event(
    Category.MAPI_MACHINE_SET.group,
    Category.MAPI_MACHINE_SET.version,
    Category.MAPI_MACHINE_SET.plural,
    when=in_namespace(MACHINE_API_NAMESPACE),
)
async def mapi_machineset_event(type, body, memo, logger, **kwargs):
    reason = handle_event(Category.MAPI_MACHINE_SET, type, body, memo)
    if reason:
        logger.debug(f"Triggered {reason}")


@kopf.on.event(
    Category.CAPI_MACHINE_SET.group,
    Category.CAPI_MACHINE_SET.version,
    Category.CAPI_MACHINE_SET.plural,
    when=in_namespace(CAPI_NAMESPACE, CAPI_ENABLED),
)
async def capi_machineset_event(type, body, memo, logger, **kwargs):
    reason = handle_event(Category.CAPI_MACHINE_SET, type, body, memo)
    if reason:
        logger.debug(f"Triggered {reason}")


@kopf.on.event(
    Category.CAPI_MACHINE_DEPLOYMENT.group,
    Category.CAPI_MACHINE_DEPLOYMENT.version,
    Category.CAPI_MACHINE_DEPLOYMENT.plural,
    when=in_namespace(CAPI_NAMESPACE, CAPI_ENABLED),
)
async def capi_machinedeployment_event(type, body, memo, logger, **kwargs):
    reason = handle_event(Category.CAPI_MACHINE_DEPLOYMENT, type, body, memo)
    if reason:
        logger.debug(f"Triggered {reason}")
