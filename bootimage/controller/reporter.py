"""Publishes pass results as status conditions on the MachineConfiguration.

Two conditions are owned here: ``BootImageUpdateProgressing`` and
``BootImageUpdateDegraded``. Every other status field and condition type is
written back exactly as read.
"""

import asyncio
import copy
import logging
from typing import Callable, Dict, List, Optional

from bootimage.common.models.category import Category
from bootimage.controller.state import ResourceStats
from bootimage.resources.store import ResourceStore
from bootimage.sensors.base import OperatorSensor
from bootimage.types.settings import Settings
from bootimage.utils.errors import NotFoundError
from bootimage.utils.helpers import deep_compare_dict, rfc3339_now, upsert_condition
from bootimage.utils.retry import RetryPolicy, retry_on_conflict

logger = logging.getLogger(__name__)

PROGRESSING = "BootImageUpdateProgressing"
DEGRADED = "BootImageUpdateDegraded"
CONDITION_TYPES = (PROGRESSING, DEGRADED)

#: Reason carried by conditions before any pass reported
DEFAULT_REASON = "NA"

STATUS_TRUE = "True"
STATUS_FALSE = "False"


def progressing_message(stats: Dict[Category, ResourceStats]) -> str:
    return " | ".join(
        f"Reconciled {stats[c].settled} of {stats[c].total} {c.display}" for c in Category
    )


def degraded_message(stats: Dict[Category, ResourceStats], error: Optional[Exception] = None) -> str:
    message = " | ".join(f"{stats[c].errored} Degraded {c.display}" for c in Category)
    if error is not None:
        message = f"{message} | Error(s): {error}"
    return message


def default_conditions(timestamp: str) -> List[dict]:
    """Conditions of a cluster on which nothing was reconciled yet."""
    stats = {c: ResourceStats() for c in Category}
    return [
        {
            "type": PROGRESSING,
            "status": STATUS_FALSE,
            "reason": DEFAULT_REASON,
            "message": progressing_message(stats),
            "lastTransitionTime": timestamp,
        },
        {
            "type": DEGRADED,
            "status": STATUS_FALSE,
            "reason": DEFAULT_REASON,
            "message": degraded_message(stats),
            "lastTransitionTime": timestamp,
        },
    ]


def build_conditions(
    reason: str,
    stats: Dict[Category, ResourceStats],
    error: Optional[Exception] = None,
) -> List[dict]:
    """Compute both boot image conditions for a pass, without timestamps."""
    finished = all(stats[c].is_finished() for c in Category)
    degraded = error is not None or any(stats[c].errored > 0 for c in Category)
    return [
        {
            "type": PROGRESSING,
            "status": STATUS_FALSE if finished else STATUS_TRUE,
            "reason": reason,
            "message": progressing_message(stats),
        },
        {
            "type": DEGRADED,
            "status": STATUS_TRUE if degraded else STATUS_FALSE,
            "reason": reason,
            "message": degraded_message(stats, error),
        },
    ]


def merge_conditions(current: Optional[List[dict]], desired: List[dict], timestamp: str) -> List[dict]:
    """Fold ``desired`` into ``current``, leaving foreign condition types alone."""
    conditions = copy.deepcopy(current) if current else []
    present = {c.get("type") for c in conditions}
    for default in default_conditions(timestamp):
        if default["type"] not in present:
            conditions.append(default)
    for condition in desired:
        conditions = upsert_condition(conditions, condition, timestamp)
    return conditions


def changed_types(before: Optional[List[dict]], after: List[dict]) -> List[str]:
    previous = {c.get("type"): c for c in before or []}
    return [
        c["type"]
        for c in after
        if c.get("type") in CONDITION_TYPES and not deep_compare_dict(previous.get(c["type"]), c)
    ]


class ConditionReporter:
    """Writes the boot image conditions, one read-modify-write at a time."""

    def __init__(
        self,
        store: ResourceStore,
        settings: Settings = None,
        lock: asyncio.Lock = None,
        sensor: OperatorSensor = None,
        clock: Callable[[], str] = rfc3339_now,
        retry_policy: RetryPolicy = None,
        sleep=asyncio.sleep,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.lock = lock or asyncio.Lock()
        self.sensor = sensor or OperatorSensor()
        self.clock = clock
        self.retry_policy = retry_policy or RetryPolicy(
            steps=self.settings.condition_update_retry_steps,
            duration=self.settings.condition_update_retry_duration_seconds,
            factor=self.settings.condition_update_retry_factor,
            jitter=self.settings.condition_update_retry_jitter,
        )
        self.sleep = sleep

    async def report(
        self,
        reason: str,
        stats: Dict[Category, ResourceStats],
        error: Optional[Exception] = None,
    ) -> bool:
        """Publish ``stats`` and ``error`` for a pass triggered by ``reason``.

        Returns True if the conditions were written, False if they already
        matched. Raises the last StoreError if the write kept failing.
        """
        desired = build_conditions(reason, stats, error)
        attempts = 0
        changed: List[str] = []

        async def attempt() -> bool:
            nonlocal attempts, changed
            attempts += 1
            body = await self.store.get_machine_configuration(fresh=True)
            if body is None:
                raise NotFoundError(
                    f"MachineConfiguration {self.settings.machine_configuration_name} not found",
                    status=404,
                )
            status = copy.deepcopy(body.get("status") or {})
            current = status.get("conditions")
            conditions = merge_conditions(current, desired, self.clock())
            if deep_compare_dict(conditions, current or []):
                return False
            changed = changed_types(current, conditions)
            status["conditions"] = conditions
            updated = dict(body)
            updated["status"] = status
            await self.store.update_machine_configuration_status(updated)
            return True

        async with self.lock:
            try:
                written = await retry_on_conflict(self.retry_policy, attempt, sleep=self.sleep)
            except Exception as e:
                logger.error(f"Error updating MachineConfiguration status: {e}")
                self.sensor.on_condition_update(list(CONDITION_TYPES), attempts, False)
                raise

        if written:
            logger.info(f"Updated boot image conditions {changed} for {reason}")
            self.sensor.on_condition_update(changed, attempts, True)
        return written
