"""Enums and type aliases for powcap."""

from enum import StrEnum


class RedeemMessage(StrEnum):
    INVALID_BODY = "Invalid body"
    CHALLENGE_EXPIRED = "Challenge expired"
    INVALID_SOLUTION = "Invalid solution"
