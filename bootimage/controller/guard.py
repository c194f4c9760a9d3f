"""Per-resource drift detection with hot loop containment.

A hot loop is another actor reverting the boot image the controller keeps
pushing. Every push of the same value is counted; once the count exceeds
the limit the resource is left alone and reported errored until it either
converges, changes the value it needs, or leaves the managed scope.
"""

import logging
from typing import Mapping

from bootimage.controller.state import (
    BootImageState,
    BootImageStateStore,
    Outcome,
    ResourceKey,
)
from bootimage.resources.store import ResourceStore
from bootimage.sensors.base import OperatorSensor
from bootimage.strategies.base import BootImageStrategy
from bootimage.types.models.golden import GoldenConfiguration
from bootimage.types.settings import HOT_LOOP_LIMIT
from bootimage.utils.errors import StoreError, UnsupportedResourceError

logger = logging.getLogger(__name__)


class DriftGuard:
    def __init__(
        self,
        store: ResourceStore,
        state: BootImageStateStore,
        hot_loop_limit: int = HOT_LOOP_LIMIT,
        sensor: OperatorSensor = None,
    ) -> None:
        self.store = store
        self.state = state
        self.hot_loop_limit = hot_loop_limit
        self.sensor = sensor or OperatorSensor()

    async def evaluate(
        self,
        key: ResourceKey,
        strategy: BootImageStrategy,
        body: Mapping,
        golden: GoldenConfiguration,
    ) -> Outcome:
        """Bring one resource's boot image in line with ``golden``.

        Returns the outcome the resource counts as for this pass. Never
        raises for per-resource problems.
        """
        try:
            arch = strategy.architecture(body)
            os_id = strategy.os_id(body)
            desired = golden.boot_image_for(arch, os_id)
            if not desired:
                logger.info(f"No boot image for {arch}/{os_id} in golden configuration, skipping {key}")
                return Outcome.SKIPPED
            current = strategy.current_image(body)
        except UnsupportedResourceError as e:
            logger.warning(f"Cannot evaluate {key}: {e}")
            return Outcome.ERRORED

        if current == desired:
            return Outcome.SETTLED

        previous = self.state.get(key)
        if previous is not None and previous.last_pushed_value == desired:
            count = previous.hot_loop_count + 1
        else:
            count = 1

        if count > self.hot_loop_limit:
            logger.error(
                f"Hot loop detected on {key}: {desired} was pushed "
                f"{count - 1} times and reverted to {current}"
            )
            self.sensor.on_hot_loop_detected(
                key.category.display, key.namespace, key.name, count - 1
            )
            return Outcome.ERRORED

        try:
            patch = strategy.build_patch(body, desired)
        except UnsupportedResourceError as e:
            logger.warning(f"Cannot build boot image patch for {key}: {e}")
            return Outcome.ERRORED

        try:
            await self.store.patch(key.category, body, patch)
        except StoreError as e:
            logger.warning(f"Failed to patch boot image on {key}: {e}")
            self.sensor.on_patch(key.category.display, key.namespace, key.name, False, e)
            return Outcome.ERRORED

        self.state.set(key, BootImageState(desired, count))
        self.sensor.on_patch(key.category.display, key.namespace, key.name, True)
        logger.info(f"Updated boot image on {key} from {current} to {desired} (push {count})")
        return Outcome.IN_PROGRESS

    def release(self, key: ResourceKey) -> None:
        """Forget the hot loop history of a resource leaving the managed scope."""
        if self.state.forget(key):
            logger.info(f"Cleared boot image state for {key}")
