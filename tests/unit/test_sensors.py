"""Unit tests for the sensor framework."""

from unittest.mock import Mock

from prometheus_client import CollectorRegistry

from bootimage.sensors import OperatorSensor, PrometheusMonitor, SensorDelegate


class TestSensorDelegate:
    def test_fans_out_to_every_sensor(self):
        first, second = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        delegate = SensorDelegate()
        delegate.add(first)
        delegate.add(second)

        delegate.on_patch("MAPI MachineSets", "ns", "ms", True)

        first.on_patch.assert_called_once_with("MAPI MachineSets", "ns", "ms", True, None)
        second.on_patch.assert_called_once_with("MAPI MachineSets", "ns", "ms", True, None)

    def test_failing_sensor_does_not_interrupt(self):
        failing, healthy = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        failing.on_trigger.side_effect = RuntimeError("boom")
        delegate = SensorDelegate()
        delegate.add(failing)
        delegate.add(healthy)

        delegate.on_trigger("MAPIMachinesetAdded")

        healthy.on_trigger.assert_called_once_with("MAPIMachinesetAdded")

    def test_pass_state_is_routed_per_sensor(self):
        sensor = Mock(spec=OperatorSensor)
        sensor.on_pass_start.return_value = {"start_time": 1.0}
        delegate = SensorDelegate()
        delegate.add(sensor)

        state = delegate.on_pass_start("r")
        delegate.on_pass_complete("r", state, {})

        sensor.on_pass_complete.assert_called_once_with("r", {"start_time": 1.0}, {}, None)

    def test_no_sensors(self):
        delegate = SensorDelegate()
        assert delegate.on_pass_start("r") is None
        assert len(delegate) == 0


class TestPrometheusMonitor:
    def test_records_pass_and_patch_metrics(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)

        state = monitor.on_pass_start("MAPIMachinesetUpdated")
        monitor.on_pass_complete(
            "MAPIMachinesetUpdated",
            state,
            {"MAPI MachineSets": {"total": 5, "inProgress": 1, "errored": 1}},
        )
        monitor.on_patch("MAPI MachineSets", "ns", "ms", False, RuntimeError("denied"))
        monitor.on_hot_loop_detected("MAPI MachineSets", "ns", "hot", 3)

        assert registry.get_sample_value(
            "bootimage_pass_total", {"reason": "MAPIMachinesetUpdated", "result": "success"}
        ) == 1.0
        assert registry.get_sample_value(
            "bootimage_resources", {"category": "MAPI MachineSets", "state": "settled"}
        ) == 3.0
        assert registry.get_sample_value(
            "bootimage_patch_errors_total",
            {"category": "MAPI MachineSets", "namespace": "ns", "error_type": "RuntimeError"},
        ) == 1.0
        assert registry.get_sample_value(
            "bootimage_hot_loop_detected_total",
            {"category": "MAPI MachineSets", "namespace": "ns", "name": "hot"},
        ) == 1.0

    def test_records_condition_updates(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)

        monitor.on_condition_update(["BootImageUpdateDegraded"], 2, True)

        assert registry.get_sample_value(
            "bootimage_condition_updates_total",
            {"condition_type": "BootImageUpdateDegraded", "result": "success"},
        ) == 1.0
        assert registry.get_sample_value("bootimage_condition_update_attempts_count") == 1.0
