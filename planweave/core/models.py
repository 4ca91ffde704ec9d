"""Strict Pydantic base models.

Every data model in planweave derives from one of these bases so that
validation rules are defined in a single place.
"""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Immutable base model with strict validation.

    Enforces:
    - strict=True: no type coercion, inputs must match exact types
    - extra="forbid": unknown fields are rejected
    - frozen=True: instances are immutable, updates go through model_copy
    """

    model_config = ConfigDict(
        strict=True,
        extra="forbid",
        validate_assignment=True,
        frozen=True,
        validate_default=True,
        use_enum_values=False,    # Preserve enum objects for their methods
        arbitrary_types_allowed=False,
    )


__all__ = [
    "StrictBaseModel",
]
