import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Namespace holding Machine API MachineSets
MACHINE_API_NAMESPACE = str(_getenv("MACHINE_API_NAMESPACE", "openshift-machine-api"))

#: Namespace holding Cluster API MachineSets and MachineDeployments
CAPI_NAMESPACE = str(_getenv("CAPI_NAMESPACE", "openshift-cluster-api"))

#: Namespace holding the golden boot images ConfigMap
MCO_NAMESPACE = str(_getenv("MCO_NAMESPACE", "openshift-machine-config-operator"))

#: Name of the golden boot images ConfigMap
BOOT_IMAGES_CONFIG_MAP_NAME = str(
    _getenv("BOOT_IMAGES_CONFIG_MAP_NAME", "coreos-bootimages")
)

#: Name of the cluster-scoped MachineConfiguration object
MACHINE_CONFIGURATION_NAME = str(_getenv("MACHINE_CONFIGURATION_NAME", "cluster"))

#: Number of times the same boot image may be pushed to a resource before
#: the controller stops patching it
HOT_LOOP_LIMIT = int(_getenv("HOT_LOOP_LIMIT", 3))

#: Attempts made to write status conditions when updates conflict
CONDITION_UPDATE_RETRY_STEPS = int(_getenv("CONDITION_UPDATE_RETRY_STEPS", 5))

#: Initial backoff between conflicting status updates
CONDITION_UPDATE_RETRY_DURATION_SECONDS = float(
    _getenv("CONDITION_UPDATE_RETRY_DURATION_SECONDS", 0.01)
)

#: Backoff multiplier between conflicting status updates
CONDITION_UPDATE_RETRY_FACTOR = float(_getenv("CONDITION_UPDATE_RETRY_FACTOR", 1.0))

#: Backoff jitter between conflicting status updates
CONDITION_UPDATE_RETRY_JITTER = float(_getenv("CONDITION_UPDATE_RETRY_JITTER", 0.1))

#: Reconcile Cluster API MachineSets and MachineDeployments
CAPI_ENABLED = bool(_getenv("CAPI_ENABLED", False))

#: Architecture assumed for node pools that do not advertise one
DEFAULT_ARCHITECTURE = str(_getenv("DEFAULT_ARCHITECTURE", "x86_64"))

#: OS assumed for node pools that do not carry an os-id label
DEFAULT_OS_ID = str(_getenv("DEFAULT_OS_ID", "rhcos"))

#: Port for the prometheus metrics endpoint
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))


class Settings:
    """Operator settings"""

    machine_api_namespace: str = MACHINE_API_NAMESPACE
    capi_namespace: str = CAPI_NAMESPACE
    mco_namespace: str = MCO_NAMESPACE
    boot_images_config_map_name: str = BOOT_IMAGES_CONFIG_MAP_NAME
    machine_configuration_name: str = MACHINE_CONFIGURATION_NAME
    hot_loop_limit: int = HOT_LOOP_LIMIT
    condition_update_retry_steps: int = CONDITION_UPDATE_RETRY_STEPS
    condition_update_retry_duration_seconds: float = CONDITION_UPDATE_RETRY_DURATION_SECONDS
    condition_update_retry_factor: float = CONDITION_UPDATE_RETRY_FACTOR
    condition_update_retry_jitter: float = CONDITION_UPDATE_RETRY_JITTER
    capi_enabled: bool = CAPI_ENABLED
    default_architecture: str = DEFAULT_ARCHITECTURE
    default_os_id: str = DEFAULT_OS_ID
    metrics_port: int = METRICS_PORT

    def __init__(
        self,
        *args,
        machine_api_namespace: str = None,
        capi_namespace: str = None,
        mco_namespace: str = None,
        boot_images_config_map_name: str = None,
        machine_configuration_name: str = None,
        hot_loop_limit: int = None,
        condition_update_retry_steps: int = None,
        condition_update_retry_duration_seconds: float = None,
        condition_update_retry_factor: float = None,
        condition_update_retry_jitter: float = None,
        capi_enabled: bool = None,
        default_architecture: str = None,
        default_os_id: str = None,
        metrics_port: int = None,
        **kwargs,
    ):
        if machine_api_namespace is not None:
            self.machine_api_namespace = machine_api_namespace

        if capi_namespace is not None:
            self.capi_namespace = capi_namespace

        if mco_namespace is not None:
            self.mco_namespace = mco_namespace

        if boot_images_config_map_name is not None:
            self.boot_images_config_map_name = boot_images_config_map_name

        if machine_configuration_name is not None:
            self.machine_configuration_name = machine_configuration_name

        if hot_loop_limit is not None:
            self.hot_loop_limit = hot_loop_limit

        if condition_update_retry_steps is not None:
            self.condition_update_retry_steps = condition_update_retry_steps

        if condition_update_retry_duration_seconds is not None:
            self.condition_update_retry_duration_seconds = (
                condition_update_retry_duration_seconds
            )

        if condition_update_retry_factor is not None:
            self.condition_update_retry_factor = condition_update_retry_factor

        if condition_update_retry_jitter is not None:
            self.condition_update_retry_jitter = condition_update_retry_jitter

        if capi_enabled is not None:
            self.capi_enabled = capi_enabled

        if default_architecture is not None:
            self.default_architecture = default_architecture

        if default_os_id is not None:
            self.default_os_id = default_os_id

        if metrics_port is not None:
            self.metrics_port = metrics_port

    def namespace_for(self, category) -> str:
        """Return the namespace node-pool resources of ``category`` live in."""
        return self.capi_namespace if category.is_capi else self.machine_api_namespace
