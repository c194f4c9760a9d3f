import copy
import jsonpickle
from datetime import datetime, timezone
from typing import Any, Dict, Mapping


def now() -> str:
    return datetime.now(timezone.utc).isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def rfc3339_now() -> str:
    """Current time the way Kubernetes serializes metav1.Time."""
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def sort_dict_keys(d):
    """Recursively sort dictionary keys and handle nested structures.

    Args:
        d: Data structure (dict, list, or primitive type)

    Returns:
        Sorted version of the data structure
    """
    if isinstance(d, dict):
        return {key: sort_dict_keys(value) for key, value in sorted(d.items())}
    elif isinstance(d, list):
        return [sort_dict_keys(item) for item in d]
    else:
        return d


def canonicalize_dict(data) -> str:
    """
    Returns a canonical JSON representation of a dictionary.

    Keys are sorted recursively so two dictionaries holding the same content
    always produce the same string, regardless of insertion order.
    """
    return jsonpickle.dumps(sort_dict_keys(data), unpicklable=False)


def deep_compare_dict(data1, data2) -> bool:
    """Compare two data structures deeply.

    Supports dictionaries, lists of dictionaries and nested combinations of
    both. ``None`` only equals ``None``.

    Args:
        data1: First data structure
        data2: Second data structure

    Returns:
        True if data structures are equivalent, False otherwise
    """
    if data1 is None and data2 is None:
        return True
    if data1 is None or data2 is None:
        return False

    if not isinstance(data1, type(data2)) and not isinstance(data2, type(data1)):
        return False

    try:
        return canonicalize_dict(data1) == canonicalize_dict(data2)
    except (TypeError, ValueError):
        return data1 == data2


def get_path(data: Mapping, *path: str, default: Any = None) -> Any:
    """Walk nested mappings, returning ``default`` on the first missing key.

    Unlike a keypath string, the individual keys may contain dots, which is
    the case for most Kubernetes label and annotation keys.
    """
    current = data
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    return current


def to_dict(body: Mapping) -> Dict[str, Any]:
    """Detach a (possibly read-only) object body into a plain nested dict."""
    return copy.deepcopy(dict(body))


def object_key(body: Mapping) -> tuple:
    """Return the ``(namespace, name)`` identity of an object body."""
    meta = body.get("metadata") or {}
    return meta.get("namespace") or "", meta.get("name") or ""


def upsert_condition(conds, newc, timestamp: str = None):
    """In-memory merge by .type.

    lastTransitionTime is bumped when status, reason or message changed, and
    kept otherwise.
    """
    timestamp = timestamp or now()
    conds = list(conds or [])
    for i, c in enumerate(conds):
        if c.get("type") == newc["type"]:
            ltt = c.get("lastTransitionTime") or timestamp
            if any(c.get(k) != newc.get(k) for k in ("status", "reason", "message")):
                ltt = timestamp
            conds[i] = {**c, **newc, "lastTransitionTime": ltt}
            break
    else:
        conds.append({**newc, "lastTransitionTime": timestamp})
    return conds
