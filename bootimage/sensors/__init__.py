"""Boot image controller sensor framework.

Non-invasive instrumentation of controller events through a hook-based
pattern, inspired by Faust's sensor architecture.

Key components:
- OperatorSensor: Base class defining lifecycle hooks
- SensorDelegate: Fan-out pattern for routing events to multiple backends
- PrometheusMonitor: Prometheus metrics exporter

Usage:
    from bootimage.sensors import SensorDelegate, PrometheusMonitor

    delegate = SensorDelegate()
    delegate.add(PrometheusMonitor())
"""

from bootimage.sensors.base import OperatorSensor
from bootimage.sensors.delegate import SensorDelegate
from bootimage.sensors.prometheus import PrometheusMonitor
from bootimage.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
