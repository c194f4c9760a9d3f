"""Decides which watch events are worth a reconciliation pass.

Every actionable event schedules one full pass in the background and returns
immediately; passes themselves queue up on the reconciler's pass lock.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Set, Tuple

from bootimage.common.models.category import Category
from bootimage.controller.reconciler import Reconciler
from bootimage.sensors.base import OperatorSensor
from bootimage.strategies.base import BootImageStrategy
from bootimage.types.settings import Settings
from bootimage.utils.helpers import deep_compare_dict, get_path, object_key

logger = logging.getLogger(__name__)

ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"

#: Reason prefix per node-pool category
RESOURCE_REASONS: Dict[Category, str] = {
    Category.MAPI_MACHINE_SET: "MAPIMachineset",
    Category.CAPI_MACHINE_SET: "CAPIMachineset",
    Category.CAPI_MACHINE_DEPLOYMENT: "CAPIMachineDeployment",
}
CONFIG_MAP_REASON = "BootImageConfigMap"
MACHINE_CONFIGURATION_REASON = "BootImageUpdateConfiguration"

_CONFIG_MAP = "configmap"
_MACHINE_CONFIGURATION = "machineconfiguration"


class EventTrigger:
    """Filters watch events and spawns reconciliation passes.

    kopf only hands over the new body of an object, so the watched part of
    the last body seen per object is kept to tell real changes from noise.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        strategies: Dict[Category, BootImageStrategy],
        settings: Settings = None,
        sensor: OperatorSensor = None,
    ) -> None:
        self.reconciler = reconciler
        self.strategies = strategies
        self.settings = settings or Settings()
        self.sensor = sensor or OperatorSensor()
        self._seen: Dict[Tuple[str, str, str], Any] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def on_machine_resource_event(
        self, category: Category, event_type: Optional[str], body: Mapping
    ) -> Optional[str]:
        """Handle a MachineSet or MachineDeployment event.

        Updates only count when the template, labels, annotations or owner
        references changed.
        """
        strategy = self.strategies.get(category)
        if strategy is None:
            return None
        return self._observe(
            RESOURCE_REASONS[category],
            (category.cache_key, *object_key(body)),
            event_type,
            strategy.watched_fields(body),
        )

    def on_config_map_event(self, event_type: Optional[str], body: Mapping) -> Optional[str]:
        """Handle a ConfigMap event; only the golden boot images ConfigMap counts."""
        if get_path(body, "metadata", "name") != self.settings.boot_images_config_map_name:
            return None
        return self._observe(
            CONFIG_MAP_REASON,
            (_CONFIG_MAP, *object_key(body)),
            event_type,
            get_path(body, "metadata", "resourceVersion"),
        )

    def on_machine_configuration_event(
        self, event_type: Optional[str], body: Mapping
    ) -> Optional[str]:
        """Handle a MachineConfiguration event; only the cluster object counts."""
        if get_path(body, "metadata", "name") != self.settings.machine_configuration_name:
            return None
        return self._observe(
            MACHINE_CONFIGURATION_REASON,
            (_MACHINE_CONFIGURATION, *object_key(body)),
            event_type,
            get_path(body, "status", "managedBootImagesStatus"),
        )

    def _observe(
        self,
        prefix: str,
        key: Tuple[str, str, str],
        event_type: Optional[str],
        watched: Any,
    ) -> Optional[str]:
        if event_type == DELETED:
            self._seen.pop(key, None)
            return self.spawn(f"{prefix}Deleted")

        missing = key not in self._seen
        previous = self._seen.get(key)
        self._seen[key] = watched

        # The initial listing delivers events without a type.
        if missing and event_type in (None, ADDED):
            return self.spawn(f"{prefix}Added")
        if not missing and deep_compare_dict(previous, watched):
            return None
        return self.spawn(f"{prefix}Updated")

    def spawn(self, reason: str) -> str:
        """Run a pass for ``reason`` in the background."""
        logger.info(f"Scheduling boot image pass: {reason}")
        self.sensor.on_trigger(reason)
        task = asyncio.create_task(self._run(reason))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return reason

    async def _run(self, reason: str) -> None:
        try:
            await self.reconciler.reconcile(reason)
        except asyncio.CancelledError:
            logger.warning(f"Boot image pass for {reason} cancelled")
            raise
        except Exception:
            logger.exception(f"Boot image pass for {reason} failed")

    async def drain(self) -> None:
        """Wait for every scheduled pass to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
