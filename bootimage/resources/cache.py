import asyncio
from typing import Dict, List, Mapping, Optional, Tuple

from bootimage.utils.helpers import object_key, to_dict

CONFIG_MAPS = "configmaps"
MACHINE_CONFIGURATIONS = "machineconfigurations.operator.openshift.io"


class ObjectCache:
    """In-memory copy of the objects the controller reads during a pass.

    Fed by kopf watch events and primed by a full list at startup. Readers
    get detached copies so a pass can never mutate the cache by accident.
    """

    def __init__(self) -> None:
        self._objects: Dict[str, Dict[Tuple[str, str], dict]] = {}
        self._synced = asyncio.Event()

    def upsert(self, kind: str, body: Mapping) -> None:
        """Store ``body`` unless the cache already holds a newer version."""
        key = object_key(body)
        bucket = self._objects.setdefault(kind, {})
        existing = bucket.get(key)
        if existing is not None and _is_older(body, existing):
            return
        bucket[key] = to_dict(body)

    def delete(self, kind: str, body: Mapping) -> None:
        self._objects.get(kind, {}).pop(object_key(body), None)

    def replace(self, kind: str, bodies: List[Mapping]) -> None:
        """Drop everything cached for ``kind`` and store ``bodies`` instead."""
        self._objects[kind] = {object_key(b): to_dict(b) for b in bodies}

    def get(self, kind: str, name: str, namespace: str = "") -> Optional[dict]:
        body = self._objects.get(kind, {}).get((namespace, name))
        return to_dict(body) if body is not None else None

    def list(self, kind: str, namespace: str = None) -> List[dict]:
        bodies = self._objects.get(kind, {})
        return [
            to_dict(body)
            for (ns, _), body in sorted(bodies.items())
            if namespace is None or ns == namespace
        ]

    def mark_synced(self) -> None:
        self._synced.set()

    def synced(self) -> bool:
        return self._synced.is_set()

    async def wait_synced(self) -> None:
        await self._synced.wait()


def _is_older(body: Mapping, existing: Mapping) -> bool:
    """True if ``body`` carries a lower resourceVersion than ``existing``.

    Resource versions are opaque strings; only purely numeric ones are
    compared, anything else is taken as newer.
    """
    new = (body.get("metadata") or {}).get("resourceVersion")
    old = (existing.get("metadata") or {}).get("resourceVersion")
    try:
        return int(new) < int(old)
    except (TypeError, ValueError):
        return False
