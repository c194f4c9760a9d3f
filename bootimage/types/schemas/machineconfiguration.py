from marshmallow import fields, pre_load, validate, validates, ValidationError
from bootimage.common.models.labels import LabelSelector
from bootimage.types.base import BaseSchema, metadata_fields
from bootimage.types.models.machineconfiguration import (
    FeatureConfiguration,
    MachineManager,
    MachineManagerSelection,
    MachineResourceSelector,
    ManagedBootImages,
    PartialSelection,
    SELECTION_ALL,
    SELECTION_NONE,
    SELECTION_PARTIAL,
)


class MachineResourceSelectorSchema(BaseSchema):
    __model__ = MachineResourceSelector

    match_labels = fields.Dict(
        keys=fields.Str(), values=fields.Str(), data_key="matchLabels", load_default=None
    )
    match_expressions = fields.List(
        fields.Dict(), data_key="matchExpressions", load_default=None
    )

    @validates("match_expressions")
    def validate_operators(self, value, **kwargs):
        for expr in value or []:
            if expr.get("operator") not in LabelSelector.OPERATORS:
                raise ValidationError(f"Unknown operator: {expr.get('operator')}")


class PartialSelectionSchema(BaseSchema):
    __model__ = PartialSelection

    machine_resource_selector = fields.Nested(
        MachineResourceSelectorSchema,
        data_key="machineResourceSelector",
        load_default=None,
    )


class MachineManagerSelectionSchema(BaseSchema):
    __model__ = MachineManagerSelection

    mode = fields.Str(
        data_key="mode",
        required=True,
        validate=validate.OneOf([SELECTION_ALL, SELECTION_PARTIAL, SELECTION_NONE]),
    )
    partial = fields.Nested(PartialSelectionSchema, data_key="partial", load_default=None)


class MachineManagerSchema(BaseSchema):
    __model__ = MachineManager

    resource = fields.Str(data_key="resource", required=True)
    api_group = fields.Str(data_key="apiGroup", required=True)
    selection = fields.Nested(MachineManagerSelectionSchema, data_key="selection", required=True)


class ManagedBootImagesSchema(BaseSchema):
    __model__ = ManagedBootImages

    machine_managers = fields.List(
        fields.Nested(MachineManagerSchema), data_key="machineManagers", load_default=list
    )


class FeatureConfigurationSchema(BaseSchema):
    """Loads a MachineConfiguration body.

    Only ``status.managedBootImagesStatus`` is read: it is the effective
    configuration after the operator merged defaults into the spec.
    """

    __model__ = FeatureConfiguration

    name = fields.Str(data_key="name", required=True)
    resource_version = fields.Str(data_key="resourceVersion", allow_none=True, load_default=None)
    managed_boot_images = fields.Nested(
        ManagedBootImagesSchema,
        data_key="managedBootImagesStatus",
        allow_none=True,
        load_default=None,
    )

    @pre_load
    def from_machine_configuration(self, data, **kwargs):
        if "metadata" not in data:
            return data
        status = data.get("status") or {}
        return {
            **metadata_fields(data),
            "managedBootImagesStatus": status.get("managedBootImagesStatus"),
        }
