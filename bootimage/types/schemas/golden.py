import json
from marshmallow import fields, pre_load, ValidationError
from bootimage.types.base import BaseSchema, metadata_fields
from bootimage.types.models.golden import BootImageStream, GoldenConfiguration

#: ConfigMap data key holding the boot image stream document
STREAM_KEY = "stream"

#: ConfigMap data key holding the release the stream was published with
RELEASE_VERSION_KEY = "releaseVersion"


class BootImageStreamSchema(BaseSchema):
    __model__ = BootImageStream

    architectures = fields.Dict(
        keys=fields.Str(),
        values=fields.Dict(keys=fields.Str(), values=fields.Str()),
        data_key="architectures",
        load_default=dict,
    )


class GoldenConfigurationSchema(BaseSchema):
    """Loads a golden boot images ConfigMap body.

    ``data.stream`` is a JSON document shaped like
    ``{"architectures": {"x86_64": {"rhcos": "<boot image>"}}}``.
    """

    __model__ = GoldenConfiguration

    name = fields.Str(data_key="name", required=True)
    resource_version = fields.Str(data_key="resourceVersion", allow_none=True, load_default=None)
    release_version = fields.Str(data_key="releaseVersion", allow_none=True, load_default=None)
    stream = fields.Nested(BootImageStreamSchema, data_key="stream", required=True)

    @pre_load
    def from_config_map(self, data, **kwargs):
        """Flatten the ConfigMap and decode its stream document."""
        if "metadata" not in data:
            return data
        cm_data = data.get("data") or {}
        raw_stream = cm_data.get(STREAM_KEY)
        if raw_stream is None:
            raise ValidationError(f"missing '{STREAM_KEY}' key", STREAM_KEY)
        try:
            stream = json.loads(raw_stream)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"invalid stream document: {e}", STREAM_KEY)
        return {
            **metadata_fields(data),
            "releaseVersion": cm_data.get(RELEASE_VERSION_KEY),
            "stream": stream,
        }
