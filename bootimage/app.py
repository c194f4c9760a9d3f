import kopf
import logging
import bootimage.handlers.machinesets as machinesets
import bootimage.handlers.bootimages as bootimages
import bootimage.handlers.machineconfiguration as machineconfiguration
from bootimage.types.settings import Settings
from bootimage.controller import ConditionReporter, EventTrigger, Reconciler
from bootimage.resources import KubernetesStore
from bootimage.strategies import default_strategies
from bootimage.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()

    # One ApiClient shared by every store call to prevent connection leaks
    memo.api_client = ApiClient()
    logger.info("Shared Kubernetes API client initialized")

    # Initialize sensor infrastructure
    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    strategies = default_strategies(memo.conf)
    if not memo.conf.capi_enabled:
        logger.info("Cluster API boot image management is disabled")

    memo.store = KubernetesStore(memo.api_client, memo.conf, categories=list(strategies))
    reporter = ConditionReporter(memo.store, memo.conf, sensor=sensor_delegate)
    memo.reconciler = Reconciler(
        memo.store, strategies, memo.conf, reporter=reporter, sensor=sensor_delegate
    )
    memo.trigger = EventTrigger(memo.reconciler, strategies, memo.conf, sensor=sensor_delegate)

    # Passes wait for this initial list before evaluating anything
    await memo.store.prime()
    logger.info("Resource cache primed")

    # Initialize Prometheus metrics server
    try:
        init_metrics_server(memo.conf.metrics_port)
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logger.warning("Continuing without metrics server")

    # Post warnings and errors as Kubernetes events
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    trigger = getattr(memo, "trigger", None)
    if trigger is not None and trigger.pending:
        logger.info(f"Waiting for {trigger.pending} boot image pass(es) to finish")
        await trigger.drain()

    api_client = getattr(memo, "api_client", None)
    if api_client is not None:
        await api_client.close()
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")


__all__ = [
    "machinesets",
    "bootimages",
    "machineconfiguration",
]
