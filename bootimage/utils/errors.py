import asyncio
import json

import aiohttp
import kubernetes_asyncio

_CONFLICT = "conflict"
_NOT_FOUND = "notfound"

#: Failures below the HTTP layer raised by the kubernetes_asyncio transport
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


class BootImageError(Exception):
    """Base class for all boot image controller errors."""


class StoreError(BootImageError):
    """The cluster API rejected a read or a write."""

    def __init__(self, message: str, status: int = None) -> None:
        super().__init__(message)
        self.status = status


class ConflictError(StoreError):
    """An optimistic concurrency check failed (stale resourceVersion)."""


class NotFoundError(StoreError):
    """The requested object does not exist."""


class ConfigurationError(BootImageError):
    """A cluster-scope singleton (golden or feature configuration) is unusable."""


class UnsupportedResourceError(BootImageError):
    """A node-pool resource cannot be interpreted by its boot image strategy."""


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (json.JSONDecodeError, TypeError):
        return ""
    return (err.get("reason") or "").lower()


def conflict_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 or _reason(ex) == _CONFLICT


def not_found_error(ex: kubernetes_asyncio.client.ApiException) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def convert_api_exception(ex: kubernetes_asyncio.client.ApiException) -> StoreError:
    """
    Convert a kubernetes ApiException into a store error.

    409 responses become ConflictError (retryable), 404 responses become
    NotFoundError and everything else a plain StoreError.
    """
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        raise ex

    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, AttributeError, TypeError):
        pass

    if conflict_error(ex):
        return ConflictError(error_msg, status=ex.status)
    if not_found_error(ex):
        return NotFoundError(error_msg, status=ex.status)
    return StoreError(error_msg, status=ex.status)


def convert_transport_error(ex: Exception) -> StoreError:
    """Convert a connection or timeout failure into a store error."""
    detail = str(ex) or ex.__class__.__name__
    return StoreError(f"Kubernetes API unreachable ({ex.__class__.__name__}): {detail}")
