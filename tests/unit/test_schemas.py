"""Unit tests for golden and feature configuration schemas."""

import pytest
from marshmallow import ValidationError

from bootimage.common.models.category import Category
from bootimage.common.models.labels import Labels
from bootimage.types.models import FeatureConfiguration, GoldenConfiguration
from bootimage.types.schemas import FeatureConfigurationSchema, GoldenConfigurationSchema
from conftest import GOLDEN_ARM, GOLDEN_X86, golden_config_map, machine_configuration, manager

MAPI = Category.MAPI_MACHINE_SET


class TestGoldenConfigurationSchema:
    """Tests for GoldenConfigurationSchema"""

    def test_load_config_map(self):
        golden = GoldenConfigurationSchema().load(golden_config_map())

        assert isinstance(golden, GoldenConfiguration)
        assert golden.name == "coreos-bootimages"
        assert golden.resource_version == "10"
        assert golden.release_version == "4.18.0"
        assert golden.boot_image_for("x86_64", "rhcos") == GOLDEN_X86
        assert golden.boot_image_for("aarch64", "rhcos") == GOLDEN_ARM

    def test_missing_entries(self):
        golden = GoldenConfigurationSchema().load(golden_config_map())
        assert golden.boot_image_for("s390x", "rhcos") is None
        assert golden.boot_image_for("x86_64", "rhel") is None

    def test_missing_stream_key(self):
        config_map = golden_config_map()
        del config_map["data"]["stream"]
        with pytest.raises(ValidationError):
            GoldenConfigurationSchema().load(config_map)

    def test_invalid_stream_document(self):
        config_map = golden_config_map()
        config_map["data"]["stream"] = "not-json"
        with pytest.raises(ValidationError):
            GoldenConfigurationSchema().load(config_map)

    def test_unknown_stream_fields_are_ignored(self):
        config_map = golden_config_map()
        config_map["data"]["stream"] = (
            '{"stream": "rhcos-4.18", "architectures": {"x86_64": {"rhcos": "ami-1"}}}'
        )
        golden = GoldenConfigurationSchema().load(config_map)
        assert golden.boot_image_for("x86_64", "rhcos") == "ami-1"


class TestFeatureConfigurationSchema:
    """Tests for FeatureConfigurationSchema and enrollment"""

    def load(self, managers):
        return FeatureConfigurationSchema().load(machine_configuration(managers))

    def test_load_machine_configuration(self):
        feature = self.load([manager()])

        assert isinstance(feature, FeatureConfiguration)
        assert feature.name == "cluster"
        assert feature.resource_version == "100"
        assert feature.manager_for(MAPI).api_group == "machine.openshift.io"

    def test_mode_all(self):
        feature = self.load([manager(mode="All")])
        assert feature.is_enrolled(MAPI, Labels.empty())
        assert not feature.opted_out()

    def test_mode_none(self):
        feature = self.load([manager(mode="None")])
        assert not feature.is_enrolled(MAPI, Labels.empty())
        assert feature.opted_out()

    def test_mode_partial(self):
        feature = self.load(
            [
                manager(
                    mode="Partial",
                    match_labels={"boot": "managed"},
                    match_expressions=[{"key": "zone", "operator": "In", "values": ["a", "b"]}],
                )
            ]
        )
        assert feature.is_enrolled(MAPI, Labels({"boot": "managed", "zone": "a"}))
        assert not feature.is_enrolled(MAPI, Labels({"boot": "managed", "zone": "c"}))
        assert not feature.is_enrolled(MAPI, Labels({"zone": "a"}))

    def test_partial_without_selector_enrolls_nothing(self):
        feature = self.load([{"resource": "machinesets", "apiGroup": "machine.openshift.io", "selection": {"mode": "Partial"}}])
        assert not feature.is_enrolled(MAPI, Labels({"boot": "managed"}))

    def test_manager_for_other_category(self):
        feature = self.load([manager(Category.CAPI_MACHINE_SET)])
        assert feature.manager_for(MAPI) is None
        assert not feature.is_enrolled(MAPI, Labels.empty())
        assert feature.is_enrolled(Category.CAPI_MACHINE_SET, Labels.empty())

    def test_no_managed_status(self):
        body = machine_configuration()
        del body["status"]["managedBootImagesStatus"]
        feature = FeatureConfigurationSchema().load(body)
        assert feature.opted_out()
        assert not feature.is_enrolled(MAPI, Labels.empty())

    def test_invalid_mode(self):
        with pytest.raises(ValidationError):
            self.load([manager(mode="Sometimes")])

    def test_invalid_selector_operator(self):
        with pytest.raises(ValidationError):
            self.load(
                [manager(mode="Partial", match_expressions=[{"key": "a", "operator": "Matches"}])]
            )
