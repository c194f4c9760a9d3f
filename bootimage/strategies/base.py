from typing import Any, Dict, Mapping, Optional

from bootimage.common.models.category import Category
from bootimage.common.models.labels import Labels
from bootimage.types.settings import Settings
from bootimage.utils.helpers import get_path


class BootImageStrategy:
    """Reads and rewrites the boot image of one category of node pool.

    The reconciler never looks inside a node-pool body itself; everything
    resource-kind specific goes through a strategy.
    """

    category: Category

    def __init__(self, settings: Settings = None) -> None:
        self.settings = settings or Settings()

    def labels(self, body: Mapping) -> Labels:
        return Labels(get_path(body, "metadata", "labels", default={}))

    def annotations(self, body: Mapping) -> Dict[str, str]:
        return dict(get_path(body, "metadata", "annotations", default={}) or {})

    def architecture(self, body: Mapping) -> str:
        return Labels.architecture_from_annotations(
            self.annotations(body), self.settings.default_architecture
        )

    def os_id(self, body: Mapping) -> str:
        return self.labels(body).get(Labels.OS_ID_LABEL) or self.settings.default_os_id

    def current_image(self, body: Mapping) -> Optional[str]:
        """Return the boot image the resource currently references."""
        raise NotImplementedError()

    def build_patch(self, body: Mapping, desired: str) -> Dict[str, Any]:
        """Return a merge patch pointing the resource at ``desired``."""
        raise NotImplementedError()

    def template_spec(self, body: Mapping) -> Any:
        """Return the part of the spec a boot image change lives in."""
        raise NotImplementedError()

    def watched_fields(self, body: Mapping) -> Dict[str, Any]:
        """Field groups whose change makes a resource update worth a pass."""
        meta = body.get("metadata") or {}
        return {
            "template": self.template_spec(body),
            "labels": meta.get("labels") or {},
            "annotations": meta.get("annotations") or {},
            "ownerReferences": meta.get("ownerReferences") or [],
        }
