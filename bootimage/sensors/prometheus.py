"""Prometheus monitoring backend for the boot image controller.

This module provides PrometheusMonitor, which collects controller lifecycle
events and exposes them as Prometheus metrics:

1. Pass health - Duration, throughput, pass-level errors, per category counts
2. Resource updates - Patch results and hot loop detections
3. Status reporting - Condition writes and conflict retries
"""

from typing import Dict, List, Optional, Any
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Gauge

from bootimage.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the boot image controller.

    Metrics are organized into three groups:
    - bootimage_trigger_* / bootimage_pass_* - Trigger and pass metrics
    - bootimage_patch_* / bootimage_hot_loop_* - Resource update metrics
    - bootimage_condition_* - Status condition metrics
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        # =============================================================================
        # Trigger & Pass Metrics
        # =============================================================================

        self.triggers_total = Counter(
            'bootimage_triggers_total',
            'Total number of watch events that scheduled a pass',
            labelnames=['reason'],
            registry=registry,
        )

        self.pass_duration = Histogram(
            'bootimage_pass_duration_seconds',
            'Time spent in a reconciliation pass',
            labelnames=['reason', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry,
        )

        self.pass_total = Counter(
            'bootimage_pass_total',
            'Total number of reconciliation passes',
            labelnames=['reason', 'result'],
            registry=registry,
        )

        self.pass_errors = Counter(
            'bootimage_pass_errors_total',
            'Total number of passes that ended with a pass-level error',
            labelnames=['error_type'],
            registry=registry,
        )

        self.resources = Gauge(
            'bootimage_resources',
            'Resources counted by the last pass',
            labelnames=['category', 'state'],
            registry=registry,
        )

        # =============================================================================
        # Resource Update Metrics
        # =============================================================================

        self.patch_total = Counter(
            'bootimage_patch_total',
            'Total number of boot image patches sent',
            labelnames=['category', 'namespace', 'result'],
            registry=registry,
        )

        self.patch_errors = Counter(
            'bootimage_patch_errors_total',
            'Total number of rejected boot image patches',
            labelnames=['category', 'namespace', 'error_type'],
            registry=registry,
        )

        self.hot_loop_detected = Counter(
            'bootimage_hot_loop_detected_total',
            'Total number of passes that found a resource in a hot loop',
            labelnames=['category', 'namespace', 'name'],
            registry=registry,
        )

        # =============================================================================
        # Status Condition Metrics
        # =============================================================================

        self.condition_updates = Counter(
            'bootimage_condition_updates_total',
            'Total number of status condition writes',
            labelnames=['condition_type', 'result'],
            registry=registry,
        )

        self.condition_update_attempts = Histogram(
            'bootimage_condition_update_attempts',
            'Write attempts needed per status condition update',
            buckets=[1, 2, 3, 4, 5, 10],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    def on_trigger(self, reason: str) -> None:
        self.triggers_total.labels(reason=reason).inc()

    def on_pass_start(self, reason: str) -> Optional[Dict[str, Any]]:
        """Record pass start time."""
        return {'start_time': time.time()}

    def on_pass_complete(
        self,
        reason: str,
        state: Optional[Dict[str, Any]],
        stats: Dict[str, Dict[str, int]],
        error: Optional[Exception] = None,
    ) -> None:
        """Record pass duration, result and the per category counts."""
        result = 'success' if error is None else 'failure'
        if state:
            duration = time.time() - state['start_time']
            self.pass_duration.labels(reason=reason, result=result).observe(duration)

        self.pass_total.labels(reason=reason, result=result).inc()

        if error is not None:
            self.pass_errors.labels(error_type=error.__class__.__name__).inc()

        for category, counts in stats.items():
            total = counts.get('total', 0)
            in_progress = counts.get('inProgress', 0)
            errored = counts.get('errored', 0)
            self.resources.labels(category=category, state='total').set(total)
            self.resources.labels(category=category, state='in_progress').set(in_progress)
            self.resources.labels(category=category, state='errored').set(errored)
            self.resources.labels(category=category, state='settled').set(
                total - in_progress - errored
            )

    def on_patch(
        self,
        category: str,
        namespace: str,
        name: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        result = 'success' if success else 'failure'
        self.patch_total.labels(category=category, namespace=namespace, result=result).inc()
        if error is not None:
            self.patch_errors.labels(
                category=category,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    def on_hot_loop_detected(
        self,
        category: str,
        namespace: str,
        name: str,
        count: int,
    ) -> None:
        self.hot_loop_detected.labels(category=category, namespace=namespace, name=name).inc()

    def on_condition_update(
        self,
        condition_types: List[str],
        attempts: int,
        success: bool,
    ) -> None:
        result = 'success' if success else 'failure'
        for condition_type in condition_types:
            self.condition_updates.labels(condition_type=condition_type, result=result).inc()
        self.condition_update_attempts.observe(attempts)
