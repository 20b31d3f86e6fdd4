from typing import Annotated

from fastapi import APIRouter, Depends, Path

from onetime.application.otp import generate_otp, validate_otp
from onetime.domain.ports.otp_cache import OtpCachePort
from onetime.presentation.dependencies import get_app_settings, get_otp_cache
from onetime.schemas.requests import OtpGenerateIn, OtpValidateIn
from onetime.schemas.responses import OtpOut, ValidOut
from onetime.settings import Settings

router = APIRouter(prefix="/otp", tags=["OTP"])

Action = Annotated[str, Path(min_length=1, max_length=128)]


@router.post("/{action}", response_model=OtpOut)
async def post_generate_otp(
    action: Action,
    body: OtpGenerateIn,
    cache: Annotated[OtpCachePort, Depends(get_otp_cache)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    password = await generate_otp(
        cache,
        action,
        data=body.data,
        length=body.length or settings.otp_length,
        ttl_seconds=body.ttl or settings.otp_ttl_seconds,
        key_prefix=settings.otp_key_prefix,
    )
    return OtpOut(password=password)


@router.post("/{action}/validate", response_model=ValidOut)
async def post_validate_otp(
    action: Action,
    body: OtpValidateIn,
    cache: Annotated[OtpCachePort, Depends(get_otp_cache)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    valid = await validate_otp(
        cache,
        body.otp,
        action,
        data=body.data,
        key_prefix=settings.otp_key_prefix,
        consume_on_success=settings.otp_consume_on_success,
    )
    return ValidOut(valid=valid)
