"""Reusable, strict pydantic base models for configuration and persisted forms."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that uses camelCase names on the wire.

    The field `pub_key` is read from and written to JSON as `pubKey`, matching
    the persisted form other libp2p implementations produce. Python code may
    still populate fields by their snake_case names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        arbitrary_types_allowed=True,
    )

    def with_updates(self: Self, **kwargs: Any) -> Self:
        """Return a validated copy with some fields replaced."""
        return self.__class__(**(self.model_dump(exclude_unset=True) | kwargs))


class StrictBaseModel(CamelModel):
    """A strict, immutable model that rejects unknown fields."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
