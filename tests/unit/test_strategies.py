"""Unit tests for boot image strategies."""

import pytest

from bootimage.common.models.category import Category
from bootimage.strategies import (
    CAPIMachineDeploymentStrategy,
    CAPIMachineSetStrategy,
    MAPIMachineSetStrategy,
    default_strategies,
)
from bootimage.utils.errors import UnsupportedResourceError
from conftest import capi_resource, mapi_machineset


def with_provider_value(value):
    body = mapi_machineset("ms")
    body["spec"]["template"]["spec"]["providerSpec"]["value"] = value
    return body


class TestMAPIMachineSetStrategy:
    """Tests for MAPIMachineSetStrategy"""

    @pytest.fixture
    def strategy(self, settings):
        return MAPIMachineSetStrategy(settings)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ({"kind": "AWSMachineProviderConfig", "ami": {"id": "ami-1"}}, "ami-1"),
            (
                {"kind": "GCPMachineProviderSpec", "disks": [{"image": "projects/rhcos/img", "boot": True}]},
                "projects/rhcos/img",
            ),
            ({"kind": "AzureMachineProviderSpec", "image": {"resourceID": "/images/rhcos"}}, "/images/rhcos"),
            ({"kind": "VSphereMachineProviderSpec", "template": "rhcos-template"}, "rhcos-template"),
            ({"kind": "OpenstackProviderSpec", "image": "rhcos-glance"}, "rhcos-glance"),
        ],
    )
    def test_current_image(self, strategy, value, expected):
        assert strategy.current_image(with_provider_value(value)) == expected

    def test_build_patch_keeps_other_provider_fields(self, strategy):
        body = with_provider_value(
            {
                "kind": "GCPMachineProviderSpec",
                "disks": [{"image": "old", "sizeGb": 128}],
                "labels": {"node.openshift.io/role": "worker"},
            }
        )

        patch = strategy.build_patch(body, "new")

        value = patch["spec"]["template"]["spec"]["providerSpec"]["value"]
        assert value["disks"] == [{"image": "new", "sizeGb": 128}]
        assert value["labels"] == {"node.openshift.io/role": "worker"}
        # the input body is left untouched
        assert body["spec"]["template"]["spec"]["providerSpec"]["value"]["disks"][0]["image"] == "old"

    def test_unsupported_provider(self, strategy):
        body = with_provider_value({"kind": "NutanixMachineProviderConfig"})
        with pytest.raises(UnsupportedResourceError):
            strategy.current_image(body)

    def test_missing_provider_value(self, strategy):
        body = mapi_machineset("ms")
        del body["spec"]["template"]["spec"]["providerSpec"]["value"]
        with pytest.raises(UnsupportedResourceError):
            strategy.build_patch(body, "new")

    def test_missing_boot_image_field(self, strategy):
        body = with_provider_value({"kind": "AWSMachineProviderConfig"})
        assert strategy.current_image(body) is None
        with pytest.raises(UnsupportedResourceError):
            strategy.build_patch(body, "new")

    def test_architecture_and_os(self, strategy):
        body = mapi_machineset(
            "ms",
            labels={"machine.openshift.io/os-id": "rhel"},
            annotations={
                "capacity.cluster-autoscaler.kubernetes.io/labels": "kubernetes.io/arch=arm64,foo=bar"
            },
        )
        assert strategy.architecture(body) == "aarch64"
        assert strategy.os_id(body) == "rhel"

    def test_architecture_and_os_defaults(self, strategy):
        body = mapi_machineset("ms")
        assert strategy.architecture(body) == "x86_64"
        assert strategy.os_id(body) == "rhcos"


class TestCAPIStrategies:
    """Tests for the Cluster API template strategies"""

    def test_current_image_and_patch(self, capi_settings):
        strategy = CAPIMachineSetStrategy(capi_settings)
        body = capi_resource("ms", image="ami-1")

        assert strategy.current_image(body) == "ami-1"
        assert strategy.build_patch(body, "ami-2") == {
            "spec": {
                "template": {"metadata": {"annotations": {"machine.openshift.io/boot-image": "ami-2"}}}
            }
        }

    def test_missing_annotation(self, capi_settings):
        strategy = CAPIMachineDeploymentStrategy(capi_settings)
        body = capi_resource("md", kind="MachineDeployment")
        del body["spec"]["template"]["metadata"]
        assert strategy.current_image(body) is None


class TestDefaultStrategies:
    def test_mapi_only_by_default(self, settings):
        assert list(default_strategies(settings)) == [Category.MAPI_MACHINE_SET]

    def test_capi_enabled(self, capi_settings):
        assert set(default_strategies(capi_settings)) == set(Category)
