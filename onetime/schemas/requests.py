from typing import Any

from pydantic import BaseModel, Field


class OtpGenerateIn(BaseModel):
    data: Any = Field(None, description="Context data the OTP is bound to")
    length: int | None = Field(None, ge=4, le=64, description="Password length")
    ttl: int | None = Field(None, ge=1, le=86_400, description="Lifetime in seconds")


class OtpValidateIn(BaseModel):
    otp: str = Field(..., min_length=1, max_length=64)
    data: Any = Field(None, description="Same context data as at generation")


class CardValidateIn(BaseModel):
    index: int = Field(..., ge=0, description="Card slot the user was asked for")
    otp: str = Field(..., min_length=1, max_length=64)
