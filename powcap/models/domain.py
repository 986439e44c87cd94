"""Challenge, token and result contracts shared by the core and the web layer."""

from __future__ import annotations

from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class ChallengePair(NamedTuple):
    """One unit of work: find a candidate so sha256(salt + candidate) starts with target."""

    salt: str
    target: str


class ChallengeConfig(BaseModel):
    """Options for a single ``create_challenge`` call.

    Non-positive numeric values fall back to the field default, so a caller
    can override just the options it cares about.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    challenge_count: int = 50
    challenge_size: int = 32  # salt length in bytes
    challenge_difficulty: int = 4  # target length in bytes
    expires_ms: int = 600_000
    store: bool = True

    @field_validator(
        "challenge_count", "challenge_size", "challenge_difficulty", "expires_ms", mode="after"
    )
    @classmethod
    def _default_when_not_positive(cls, value: int, info: ValidationInfo) -> int:
        if value > 0:
            return value
        return cls.model_fields[info.field_name].default  # type: ignore[index]


class TokenConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    keep_token: bool = False


class ChallengeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    pairs: list[ChallengePair]
    expires: int  # epoch ms
    token: str


class Solution(BaseModel):
    """A redemption payload: the challenge token plus ``[salt, target, candidate]`` triples."""

    token: str = ""
    solutions: list[Any] | None = None


class ChallengeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pairs: list[ChallengePair] = Field(alias="challenge")
    token: str | None = None
    expires: int


class RedeemResponse(BaseModel):
    success: bool
    message: str | None = None
    token: str | None = None
    expires: int | None = None


class ValidationResponse(BaseModel):
    success: bool
