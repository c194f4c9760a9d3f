from .cache import ObjectCache
from .store import KubernetesStore, ResourceStore

__all__ = ["ObjectCache", "KubernetesStore", "ResourceStore"]
