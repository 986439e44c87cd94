"""Challenge, redemption and validation endpoints."""

from __future__ import annotations

import asyncio
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from powcap.config.settings import Settings  # noqa: TC001 - resolved by FastAPI at runtime
from powcap.core.cap import Cap  # noqa: TC001
from powcap.exceptions import EntropyUnavailable
from powcap.models.domain import (
    ChallengeResponse,
    RedeemResponse,
    Solution,
    TokenConfig,
    ValidationResponse,
)
from powcap.types import RedeemMessage
from powcap.web.dependencies import get_app_settings, get_cap

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["cap"])

CapDep = Annotated[Cap, Depends(get_cap)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


class ValidateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = ""
    keep_token: bool | None = Field(default=None, alias="keepToken")


@router.post("/challenge", response_model=ChallengeResponse, response_model_exclude_none=True)
async def create_challenge(cap: CapDep, settings: SettingsDep) -> ChallengeResponse:
    """Issue a challenge using the configured defaults."""
    try:
        return await asyncio.to_thread(cap.create_challenge, settings.challenge_config())
    except EntropyUnavailable as exc:
        logger.error("challenge_create_failed", error=str(exc))
        raise HTTPException(status_code=503, detail="Failed to create challenge") from exc


@router.post("/redeem", response_model=RedeemResponse, response_model_exclude_none=True)
async def redeem_challenge(body: Solution, cap: CapDep) -> RedeemResponse:
    """Exchange a solved challenge for a verification token."""
    try:
        result = await asyncio.to_thread(cap.redeem_challenge, body)
    except EntropyUnavailable as exc:
        logger.error("token_mint_failed", error=str(exc))
        raise HTTPException(status_code=503, detail="Failed to redeem challenge") from exc

    if result.message == RedeemMessage.INVALID_BODY:
        raise HTTPException(status_code=400, detail=str(RedeemMessage.INVALID_BODY))
    return result


@router.post("/validate", response_model=ValidationResponse)
async def validate_token(
    body: ValidateRequest, cap: CapDep, settings: SettingsDep
) -> ValidationResponse:
    """Check a verification token on behalf of a relying application."""
    if not body.token:
        raise HTTPException(status_code=400, detail="Token is required")

    keep = settings.keep_token if body.keep_token is None else body.keep_token
    return await asyncio.to_thread(cap.validate_token, body.token, TokenConfig(keep_token=keep))
