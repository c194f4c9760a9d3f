from typing import Dict, List, Mapping, Optional


class ResourceLabels:
    MACHINE_DOMAIN: str = "machine.openshift.io/"

    #: OS identifier of the nodes a pool provisions
    OS_ID_LABEL = MACHINE_DOMAIN + "os-id"

    #: Boot image carried on Cluster API pool templates
    BOOT_IMAGE_ANNOTATION = MACHINE_DOMAIN + "boot-image"

    #: Autoscaler hint listing the node labels of a pool, including its arch
    ARCH_ANNOTATION = "capacity.cluster-autoscaler.kubernetes.io/labels"

    ARCH_LABEL = "kubernetes.io/arch"


#: Kubernetes arch names to the names used by the boot image stream
ARCHITECTURE_ALIASES: Dict[str, str] = {
    "amd64": "x86_64",
    "arm64": "aarch64",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


class Labels(ResourceLabels):
    _labels: Dict[str, str]

    def __init__(self, labels: Mapping[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def get(self, key: str, default: str = None) -> Optional[str]:
        return self._labels.get(key, default)

    def contains(self, other: "Labels"):
        """Returns True if all labels in `other` are contained."""
        return all(
            key in self._labels and self._labels[key] == value
            for key, value in other.as_dict().items()
        )

    def matches(self, selector: "LabelSelector") -> bool:
        return selector.matches(self)

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def empty(cls) -> "Labels":
        return Labels({})

    @classmethod
    def from_str(cls, value: str) -> "Labels":
        """Parse a ``k1=v1,k2=v2`` string, ignoring malformed entries."""
        labels = {}
        for item in (value or "").split(","):
            key, sep, val = item.strip().partition("=")
            if sep and key:
                labels[key.strip()] = val.strip()
        return Labels(labels)

    @classmethod
    def architecture_from_annotations(
        cls, annotations: Mapping[str, str], default: str
    ) -> str:
        """Determine the boot image architecture of a node pool.

        The autoscaler capacity annotation carries ``kubernetes.io/arch=<arch>``;
        Kubernetes arch names are translated to stream names (amd64 -> x86_64).
        """
        hints = cls.from_str((annotations or {}).get(cls.ARCH_ANNOTATION, ""))
        arch = hints.get(cls.ARCH_LABEL)
        if not arch:
            return default
        return ARCHITECTURE_ALIASES.get(arch, arch)


class LabelSelector:
    """A Kubernetes label selector: ``matchLabels`` plus ``matchExpressions``.

    An empty selector matches everything.
    """

    OPERATORS = ("In", "NotIn", "Exists", "DoesNotExist")

    def __init__(
        self,
        match_labels: Mapping[str, str] = None,
        match_expressions: List[Mapping] = None,
    ) -> None:
        self.match_labels = Labels(match_labels)
        self.match_expressions = list(match_expressions or [])

    def matches(self, labels: Labels) -> bool:
        if not labels.contains(self.match_labels):
            return False
        return all(self._match_expression(labels, expr) for expr in self.match_expressions)

    def _match_expression(self, labels: Labels, expr: Mapping) -> bool:
        key = expr.get("key")
        operator = expr.get("operator")
        values = expr.get("values") or []
        present = key in labels.as_dict()
        if operator == "In":
            return present and labels.get(key) in values
        if operator == "NotIn":
            return not present or labels.get(key) not in values
        if operator == "Exists":
            return present
        if operator == "DoesNotExist":
            return not present
        raise ValueError(f"Unknown label selector operator: {operator}")

    def __repr__(self):
        return f"LabelSelector<{self.match_labels.as_dict()}, {self.match_expressions}>"
