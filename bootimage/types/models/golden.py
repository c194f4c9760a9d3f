from typing import Dict, Optional
from bootimage.types.base import BaseModel


class BootImageStream(BaseModel):
    """Desired boot image per architecture and OS."""

    architectures: Dict[str, Dict[str, str]]

    def boot_image_for(self, architecture: str, os_id: str) -> Optional[str]:
        return (self.architectures or {}).get(architecture, {}).get(os_id)


class GoldenConfiguration(BaseModel):
    """The golden boot images ConfigMap."""

    name: str
    resource_version: Optional[str]
    release_version: Optional[str]
    stream: BootImageStream

    def boot_image_for(self, architecture: str, os_id: str) -> Optional[str]:
        """Return the desired boot image, or None if no entry exists."""
        return self.stream.boot_image_for(architecture, os_id)
