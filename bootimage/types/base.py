from types import SimpleNamespace
from typing import Any, Dict, Mapping
from marshmallow import EXCLUDE, Schema, post_load

JSON = Dict[str, Any]
MAX_REPR_LEN = 80


class BaseModel(SimpleNamespace):
    """Attribute bag built from a loaded schema.

    Args:
        **kwargs: All passed parameters as converted to instance attributes.
    """

    def __repr__(self) -> str:
        repr_ = super().__repr__()
        if len(repr_) > MAX_REPR_LEN:
            return repr_[:MAX_REPR_LEN] + " ...)"
        return repr_


class BaseSchema(Schema):
    """The default schema for cluster objects read by the operator.

    Unknown keys are dropped; the objects loaded here are owned by other
    components and carry many fields the operator ignores.
    """

    __model__: Any = BaseModel
    """Determine the object that is created when the load method is called."""

    class Meta:
        unknown = EXCLUDE

    @post_load
    def make_object(self, data: JSON, **kwargs: Any) -> "__model__":
        """Build model for the given `__model__` class attribute.
        Args:
            data: The loaded fields, keyed by attribute name.
            **kwargs: Unused but required to match signature of `Schema.make_object`
        Returns:
            An instance of the `__model__` class.
        """
        return self.__model__(**data)


def metadata_fields(body: Mapping) -> JSON:
    """Pull name and resourceVersion out of an object's metadata for loading."""
    meta = body.get("metadata") or {}
    return {
        "name": meta.get("name"),
        "resourceVersion": meta.get("resourceVersion"),
    }


__all__ = ["BaseModel", "BaseSchema", "JSON", "metadata_fields"]
