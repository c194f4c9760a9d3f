import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from marshmallow import ValidationError

from bootimage.common.models.category import Category
from bootimage.controller.guard import DriftGuard
from bootimage.controller.reporter import ConditionReporter
from bootimage.controller.state import (
    BootImageStateStore,
    PassPhase,
    ResourceKey,
    ResourceStats,
    empty_stats,
)
from bootimage.resources.store import ResourceStore
from bootimage.sensors.base import OperatorSensor
from bootimage.strategies.base import BootImageStrategy
from bootimage.types.models import FeatureConfiguration, GoldenConfiguration
from bootimage.types.schemas import FeatureConfigurationSchema, GoldenConfigurationSchema
from bootimage.types.settings import Settings
from bootimage.utils.errors import BootImageError, ConfigurationError, StoreError
from bootimage.utils.helpers import object_key

logger = logging.getLogger(__name__)


class PassResult:
    """What a single reconciliation pass saw and did."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        self.stats: Dict[Category, ResourceStats] = empty_stats()
        self.error: Optional[Exception] = None
        self.report_error: Optional[Exception] = None
        self.phases: List[PassPhase] = [PassPhase.IDLE]

    def enter(self, phase: PassPhase) -> None:
        self.phases.append(phase)

    @property
    def phase(self) -> PassPhase:
        return self.phases[-1]

    def stats_by_display(self) -> Dict[str, Dict[str, int]]:
        return {c.display: s.as_dict() for c, s in self.stats.items()}

    def __repr__(self) -> str:
        return f"PassResult<{self.reason}, {self.stats_by_display()}, error={self.error!r}>"


class Reconciler:
    """Runs full passes over every enrolled node-pool resource, one at a time."""

    def __init__(
        self,
        store: ResourceStore,
        strategies: Dict[Category, BootImageStrategy],
        settings: Settings = None,
        reporter: ConditionReporter = None,
        pass_lock: asyncio.Lock = None,
        sensor: OperatorSensor = None,
    ) -> None:
        self.store = store
        self.strategies = strategies
        self.settings = settings or Settings()
        self.sensor = sensor or OperatorSensor()
        self.reporter = reporter or ConditionReporter(store, self.settings, sensor=self.sensor)
        self.pass_lock = pass_lock or asyncio.Lock()
        self.state = BootImageStateStore()
        self.guard = DriftGuard(store, self.state, self.settings.hot_loop_limit, self.sensor)

    async def reconcile(self, reason: str) -> PassResult:
        """Run one full pass on behalf of the trigger ``reason``."""
        result = PassResult(reason)
        await self.store.wait_synced()
        async with self.pass_lock:
            sensor_state = self.sensor.on_pass_start(reason)
            logger.info(f"Reconciling boot images ({reason})")

            try:
                await self.evaluate_all(result)
            except Exception as e:
                result.error = e
                raise
            finally:
                result.enter(PassPhase.AGGREGATING)
                logger.info(f"Boot image pass for {reason} finished: {result.stats_by_display()}")

                result.enter(PassPhase.REPORTING)
                try:
                    await self.reporter.report(reason, result.stats, result.error)
                except BootImageError as e:
                    result.report_error = e

                result.enter(PassPhase.IDLE)
                self.sensor.on_pass_complete(
                    reason, sensor_state, result.stats_by_display(), result.error
                )
        return result

    async def evaluate_all(self, result: PassResult) -> None:
        result.enter(PassPhase.LISTING)
        try:
            feature, golden = await self.load_configuration()
        except ConfigurationError as e:
            logger.error(f"Skipping boot image updates: {e}")
            result.error = e
            return

        if feature.opted_out():
            if len(self.state):
                logger.info("Boot image management disabled, clearing boot image state")
            self.state.clear()
        result.enter(PassPhase.EVALUATING)
        errors = []
        for category in Category:
            try:
                await self.reconcile_category(category, feature, golden, result.stats[category])
            except StoreError as e:
                logger.error(f"Failed to list {category.display}: {e}")
                errors.append(e)
        result.error = combine_errors(errors)

    async def load_configuration(self) -> Tuple[FeatureConfiguration, GoldenConfiguration]:
        """Read the feature and golden configuration singletons.

        Raises ConfigurationError if either is missing or malformed.
        """
        body = await self.store.get_machine_configuration()
        if body is None:
            raise ConfigurationError(
                f"MachineConfiguration {self.settings.machine_configuration_name} not found"
            )
        try:
            feature = FeatureConfigurationSchema().load(body)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid MachineConfiguration: {e.messages}")

        name = self.settings.boot_images_config_map_name
        body = await self.store.get_config_map(name)
        if body is None:
            raise ConfigurationError(f"ConfigMap {self.settings.mco_namespace}/{name} not found")
        try:
            golden = GoldenConfigurationSchema().load(body)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid boot images ConfigMap {name}: {e.messages}")
        if golden.release_version:
            logger.debug(f"Golden boot images from release {golden.release_version}")
        return feature, golden

    async def reconcile_category(
        self,
        category: Category,
        feature: FeatureConfiguration,
        golden: GoldenConfiguration,
        stats: ResourceStats,
    ) -> None:
        strategy = self.strategies.get(category)
        in_scope = set()
        if strategy is not None:
            for body in await self.store.list(category):
                key = ResourceKey(category, *object_key(body))
                if not feature.is_enrolled(category, strategy.labels(body)):
                    self.guard.release(key)
                    continue
                in_scope.add(key)
                stats.record(await self.guard.evaluate(key, strategy, body, golden))
        for key in self.state.keys(category):
            if key not in in_scope:
                self.guard.release(key)


def combine_errors(errors: List[Exception]) -> Optional[Exception]:
    if not errors:
        return None
    if len(errors) == 1:
        return errors[0]
    return BootImageError("; ".join(str(e) for e in errors))
