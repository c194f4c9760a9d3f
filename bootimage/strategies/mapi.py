"""Boot image handling for Machine API MachineSets.

The boot image lives inside the platform specific provider spec at
``spec.template.spec.providerSpec.value``; its location depends on the
provider spec kind.
"""

import copy
from typing import Any, Dict, Mapping, Optional

from benedict import benedict

from bootimage.common.models.category import Category
from bootimage.strategies.base import BootImageStrategy
from bootimage.utils.errors import UnsupportedResourceError
from bootimage.utils.helpers import get_path

PROVIDER_SPEC_PATH = ("spec", "template", "spec", "providerSpec")

#: Provider values carry label and tag keys containing dots and slashes.
KEYPATH_SEPARATOR = "|"

#: Provider spec kind -> keypath of the boot image inside providerSpec.value
BOOT_IMAGE_KEYPATHS: Dict[str, str] = {
    "AWSMachineProviderConfig": "ami|id",
    "GCPMachineProviderSpec": "disks[0]|image",
    "AzureMachineProviderSpec": "image|resourceID",
    "VSphereMachineProviderSpec": "template",
    "OpenstackProviderSpec": "image",
}


class MAPIMachineSetStrategy(BootImageStrategy):
    category = Category.MAPI_MACHINE_SET

    def provider_value(self, body: Mapping) -> Dict[str, Any]:
        value = get_path(body, *PROVIDER_SPEC_PATH, "value")
        if not isinstance(value, Mapping):
            name = get_path(body, "metadata", "name")
            raise UnsupportedResourceError(f"MachineSet {name} has no providerSpec value")
        return dict(value)

    def keypath(self, value: Mapping) -> str:
        kind = value.get("kind")
        try:
            return BOOT_IMAGE_KEYPATHS[kind]
        except KeyError:
            raise UnsupportedResourceError(f"Unsupported provider spec kind: {kind}")

    def current_image(self, body: Mapping) -> Optional[str]:
        value = self.provider_value(body)
        keypath = self.keypath(value)
        try:
            return benedict(value, keypath_separator=KEYPATH_SEPARATOR).get(keypath)
        except (IndexError, KeyError, TypeError):
            return None

    def build_patch(self, body: Mapping, desired: str) -> Dict[str, Any]:
        value = self.provider_value(body)
        keypath = self.keypath(value)
        updated = benedict(copy.deepcopy(value), keypath_separator=KEYPATH_SEPARATOR)
        if self.current_image(body) is None:
            raise UnsupportedResourceError(f"No boot image found at {keypath}")
        try:
            updated[keypath] = desired
        except (IndexError, KeyError, TypeError) as e:
            raise UnsupportedResourceError(f"Cannot set boot image at {keypath}: {e}")
        # Merge patches replace lists wholesale, so the full value is sent.
        return {
            "spec": {
                "template": {
                    "spec": {"providerSpec": {"value": updated.dict()}},
                }
            }
        }

    def template_spec(self, body: Mapping) -> Any:
        return get_path(body, *PROVIDER_SPEC_PATH)
