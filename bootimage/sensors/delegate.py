"""Sensor delegation for fan-out pattern.

This module provides SensorDelegate, which implements the delegation pattern
for routing sensor events to multiple monitoring backends simultaneously.
Each backend receives the same events and can maintain independent state.
A failing backend is logged and never interrupts the controller.
"""

from typing import Set, Dict, List, Optional, Any
import logging

from bootimage.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    Example:
        delegate = SensorDelegate()
        delegate.add(LoggingSensor())
        delegate.add(PrometheusMonitor())

        state = delegate.on_pass_start("MAPIMachinesetUpdated")
        delegate.on_pass_complete("MAPIMachinesetUpdated", state, stats)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def __len__(self) -> int:
        return len(self._sensors)

    def _error(self, sensor: OperatorSensor, hook: str, e: Exception) -> None:
        logger.error(
            f"Error in {sensor.__class__.__name__}.{hook}: {e}",
            exc_info=True,
        )

    def on_trigger(self, reason: str) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_trigger(reason)
            except Exception as e:
                self._error(sensor, "on_trigger", e)

    def on_pass_start(self, reason: str) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate pass_start to all sensors.

        Returns:
            Dict mapping each sensor to its returned state, or None if no sensors
        """
        if not self._sensors:
            return None

        states = {}
        for sensor in self._sensors:
            try:
                state = sensor.on_pass_start(reason)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                self._error(sensor, "on_pass_start", e)

        return states if states else None

    def on_pass_complete(
        self,
        reason: str,
        state: Optional[Dict[OperatorSensor, Any]],
        stats: Dict[str, Dict[str, int]],
        error: Optional[Exception] = None,
    ) -> None:
        """Delegate pass_complete to all sensors with their specific state."""
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_pass_complete(reason, sensor_state, stats, error)
            except Exception as e:
                self._error(sensor, "on_pass_complete", e)

    def on_patch(
        self,
        category: str,
        namespace: str,
        name: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_patch(category, namespace, name, success, error)
            except Exception as e:
                self._error(sensor, "on_patch", e)

    def on_hot_loop_detected(
        self,
        category: str,
        namespace: str,
        name: str,
        count: int,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_hot_loop_detected(category, namespace, name, count)
            except Exception as e:
                self._error(sensor, "on_hot_loop_detected", e)

    def on_condition_update(
        self,
        condition_types: List[str],
        attempts: int,
        success: bool,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_condition_update(condition_types, attempts, success)
            except Exception as e:
                self._error(sensor, "on_condition_update", e)
