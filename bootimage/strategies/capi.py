"""Boot image handling for Cluster API MachineSets and MachineDeployments.

Cluster API pools keep their provider details in a separate infrastructure
template, so the boot image is carried as an annotation on the pool's
machine template and picked up by the infrastructure provider.
"""

from typing import Any, Dict, Mapping, Optional

from bootimage.common.models.category import Category
from bootimage.common.models.labels import Labels
from bootimage.strategies.base import BootImageStrategy
from bootimage.utils.helpers import get_path


class CAPITemplateStrategy(BootImageStrategy):
    category: Category

    def current_image(self, body: Mapping) -> Optional[str]:
        return get_path(
            body, "spec", "template", "metadata", "annotations", Labels.BOOT_IMAGE_ANNOTATION
        )

    def build_patch(self, body: Mapping, desired: str) -> Dict[str, Any]:
        return {
            "spec": {
                "template": {
                    "metadata": {"annotations": {Labels.BOOT_IMAGE_ANNOTATION: desired}},
                }
            }
        }

    def template_spec(self, body: Mapping) -> Any:
        return get_path(body, "spec", "template")


class CAPIMachineSetStrategy(CAPITemplateStrategy):
    category = Category.CAPI_MACHINE_SET


class CAPIMachineDeploymentStrategy(CAPITemplateStrategy):
    category = Category.CAPI_MACHINE_DEPLOYMENT
