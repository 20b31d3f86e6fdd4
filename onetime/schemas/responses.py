from pydantic import BaseModel, Field


class OtpOut(BaseModel):
    password: str = Field(..., description="Plaintext OTP, to be delivered by the caller")


class ValidOut(BaseModel):
    valid: bool


class CardCreatedOut(BaseModel):
    id: str = Field(..., description="The id of the card")


class CardCodesOut(BaseModel):
    id: str
    codes: list[str]


class CardChallengeOut(BaseModel):
    index: int = Field(..., description="Card slot the user should answer with")


class CardRemainingOut(BaseModel):
    remaining: int
