"""Reusable pydantic base models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that maps snake_case fields to camelCase JSON keys.

    For example, the field `multi_address` is read from and written to
    JSON as `multiAddress`, matching the REST APIs the sidecar talks to.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )


class StrictBaseModel(CamelModel):
    """A strict, immutable pydantic base model for values we construct ourselves."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }


class LooseModel(CamelModel):
    """
    An immutable model for payloads owned by external services.

    Unknown fields are ignored so that additions on the remote side
    never break decoding.
    """

    model_config = CamelModel.model_config | {
        "extra": "ignore",
        "frozen": True,
    }
