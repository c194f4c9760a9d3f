from enum import Enum


class Category(Enum):
    """Resource families whose boot images are managed.

    Values are ``(group, version, plural, kind, display)``. The display name
    is what status condition messages call the family.
    """

    MAPI_MACHINE_SET = (
        "machine.openshift.io",
        "v1beta1",
        "machinesets",
        "MachineSet",
        "MAPI MachineSets",
    )
    CAPI_MACHINE_SET = (
        "cluster.x-k8s.io",
        "v1beta1",
        "machinesets",
        "MachineSet",
        "CAPI MachineSets",
    )
    CAPI_MACHINE_DEPLOYMENT = (
        "cluster.x-k8s.io",
        "v1beta1",
        "machinedeployments",
        "MachineDeployment",
        "CAPI MachineDeployments",
    )

    @property
    def group(self) -> str:
        return self.value[0]

    @property
    def version(self) -> str:
        return self.value[1]

    @property
    def plural(self) -> str:
        return self.value[2]

    @property
    def kind(self) -> str:
        return self.value[3]

    @property
    def display(self) -> str:
        return self.value[4]

    @property
    def is_capi(self) -> bool:
        return self.group == "cluster.x-k8s.io"

    @property
    def cache_key(self) -> str:
        return f"{self.plural}.{self.group}"

    def __str__(self) -> str:
        return self.display
