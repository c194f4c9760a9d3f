from typing import Dict, List, Optional
from bootimage.types.base import BaseModel
from bootimage.common.models.category import Category
from bootimage.common.models.labels import Labels, LabelSelector

SELECTION_ALL = "All"
SELECTION_PARTIAL = "Partial"
SELECTION_NONE = "None"


class MachineResourceSelector(BaseModel):
    match_labels: Optional[Dict[str, str]]
    match_expressions: Optional[List[Dict]]

    def as_selector(self) -> LabelSelector:
        return LabelSelector(self.match_labels, self.match_expressions)


class PartialSelection(BaseModel):
    machine_resource_selector: Optional[MachineResourceSelector]


class MachineManagerSelection(BaseModel):
    mode: str
    partial: Optional[PartialSelection]

    def selects(self, labels: Labels) -> bool:
        if self.mode == SELECTION_ALL:
            return True
        if self.mode == SELECTION_PARTIAL:
            resource_selector = self.partial.machine_resource_selector if self.partial else None
            # A partial selection without a selector enrolls nothing.
            if resource_selector is None:
                return False
            return resource_selector.as_selector().matches(labels)
        return False


class MachineManager(BaseModel):
    resource: str
    api_group: str
    selection: MachineManagerSelection

    def manages(self, category: Category) -> bool:
        return self.resource == category.plural and self.api_group == category.group


class ManagedBootImages(BaseModel):
    machine_managers: List[MachineManager]


class FeatureConfiguration(BaseModel):
    """The cluster MachineConfiguration, reduced to what boot image management reads."""

    name: str
    resource_version: Optional[str]
    managed_boot_images: Optional[ManagedBootImages]

    def manager_for(self, category: Category) -> Optional[MachineManager]:
        if not self.managed_boot_images:
            return None
        for manager in self.managed_boot_images.machine_managers or []:
            if manager.manages(category):
                return manager
        return None

    def is_enrolled(self, category: Category, labels: Labels) -> bool:
        """Return True if a resource of ``category`` with ``labels`` is managed."""
        manager = self.manager_for(category)
        if manager is None or manager.selection is None:
            return False
        return manager.selection.selects(labels)

    def opted_out(self) -> bool:
        """True when no category is managed at all."""
        return not any(
            m.selection is not None and m.selection.mode != SELECTION_NONE
            for m in (self.managed_boot_images.machine_managers if self.managed_boot_images else [])
        )
