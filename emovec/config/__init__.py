"""Configuration system: turning JSON into validated Python objects.

Model hyperparameters arrive as a Hugging Face style `config.json`; engine
and store settings come from the CLI or from code. All of them are validated
into Pydantic models so bad values fail early with clear error messages.
"""
from __future__ import annotations

import enum
from typing import Annotated, TypeVar

from pydantic import AfterValidator, BaseModel


T = TypeVar("T")


class ValidationType(enum.Enum):
    """Types of value validation we support."""

    SHOULD_BE_POSITIVE = "should_be_positive"
    SHOULD_BE_EVEN = "should_be_even"
    SHOULD_DIVIDE = "should_divide"


class Config(BaseModel):
    """Base class for all configuration objects.

    Provides a validation helper for enforcing constraints on config values.
    """

    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)

    @staticmethod
    def check(left: T, validation_type: ValidationType, right: T | None = None) -> T:
        """Validate a value against a constraint, raising ValueError on failure.

        SHOULD_DIVIDE passes when `left` divides `right` evenly.
        """
        match validation_type:
            case ValidationType.SHOULD_BE_POSITIVE:
                if left <= 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {left!r} <= 0"
                    )
                return left
            case ValidationType.SHOULD_BE_EVEN:
                if left % 2 != 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {left!r} is odd"
                    )
                return left
            case ValidationType.SHOULD_DIVIDE:
                if right is None or right % left != 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: "
                        f"{left!r} does not divide {right!r}"
                    )
                return left
            case _:
                raise ValueError(
                    f"Validation failed: unknown validation type {validation_type}"
                )


# Type aliases for validated primitives, used by the config models
PositiveInt = Annotated[
    int,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
PositiveFloat = Annotated[
    float,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
