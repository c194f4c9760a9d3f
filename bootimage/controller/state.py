"""Bookkeeping owned by the reconciler for the lifetime of the process.

Nothing here is persisted: a restart forgets all hot-loop history.
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from bootimage.common.models.category import Category


class ResourceKey(NamedTuple):
    category: Category
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.category.kind}/{self.namespace}/{self.name}"


class Outcome(str, Enum):
    """Result of evaluating one node-pool resource in one pass."""

    SETTLED = "settled"
    IN_PROGRESS = "in_progress"
    ERRORED = "errored"
    SKIPPED = "skipped"


class PassPhase(str, Enum):
    IDLE = "Idle"
    LISTING = "Listing"
    EVALUATING = "PerResourceEvaluation"
    AGGREGATING = "Aggregating"
    REPORTING = "Reporting"


class BootImageState:
    """Last boot image pushed to a resource and how often it was pushed."""

    __slots__ = ("last_pushed_value", "hot_loop_count")

    def __init__(self, last_pushed_value: str, hot_loop_count: int = 1) -> None:
        self.last_pushed_value = last_pushed_value
        self.hot_loop_count = hot_loop_count

    def __eq__(self, other) -> bool:
        if not isinstance(other, BootImageState):
            return NotImplemented
        return (self.last_pushed_value, self.hot_loop_count) == (
            other.last_pushed_value,
            other.hot_loop_count,
        )

    def __repr__(self) -> str:
        return f"BootImageState<{self.last_pushed_value!r}, {self.hot_loop_count}>"


class BootImageStateStore:
    """Hot-loop memory keyed by resource identity.

    Only mutated while the reconciler's pass lock is held.
    """

    def __init__(self) -> None:
        self._states: Dict[ResourceKey, BootImageState] = {}

    def get(self, key: ResourceKey) -> Optional[BootImageState]:
        return self._states.get(key)

    def set(self, key: ResourceKey, state: BootImageState) -> None:
        self._states[key] = state

    def forget(self, key: ResourceKey) -> bool:
        """Drop the entry for ``key``; return True if one existed."""
        return self._states.pop(key, None) is not None

    def keys(self, category: Category = None) -> List[ResourceKey]:
        return [k for k in self._states if category is None or k.category is category]

    def clear(self) -> None:
        self._states.clear()

    def __contains__(self, key: ResourceKey) -> bool:
        return key in self._states

    def __len__(self) -> int:
        return len(self._states)


class ResourceStats:
    """Per-category counts for a single pass."""

    __slots__ = ("total", "in_progress", "errored")

    def __init__(self, total: int = 0, in_progress: int = 0, errored: int = 0) -> None:
        self.total = total
        self.in_progress = in_progress
        self.errored = errored

    @property
    def settled(self) -> int:
        return self.total - self.in_progress - self.errored

    def record(self, outcome: Outcome) -> None:
        self.total += 1
        if outcome is Outcome.IN_PROGRESS:
            self.in_progress += 1
        elif outcome is Outcome.ERRORED:
            self.errored += 1

    def is_finished(self) -> bool:
        """True once no resource is still waiting for a pushed boot image to land.

        Every counted resource is then either settled or errored.
        """
        return self.settled + self.errored == self.total

    def as_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "inProgress": self.in_progress,
            "errored": self.errored,
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResourceStats):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __repr__(self) -> str:
        return f"ResourceStats<{self.as_dict()}>"


def empty_stats() -> Dict[Category, ResourceStats]:
    return {category: ResourceStats() for category in Category}
