from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from onetime.application.cards import (
    card_codes,
    card_generate,
    card_remaining,
    card_select,
    card_validate,
)
from onetime.domain.errors import CardSaveError
from onetime.domain.ports.card_store import CardStorePort
from onetime.presentation.dependencies import get_app_settings, get_card_store
from onetime.schemas.requests import CardValidateIn
from onetime.schemas.responses import (
    CardChallengeOut,
    CardCodesOut,
    CardCreatedOut,
    CardRemainingOut,
    ValidOut,
)
from onetime.settings import Settings

router = APIRouter(prefix="/cards", tags=["Password cards"])

Store = Annotated[CardStorePort, Depends(get_card_store)]


@router.post("", status_code=201, response_model=CardCreatedOut)
async def post_create_card(
    store: Store,
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    try:
        card_id = await card_generate(store, code_length=settings.card_code_length)
    except CardSaveError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="card storage unavailable",
        )
    return CardCreatedOut(id=card_id)


@router.get("/{card_id}/codes", response_model=CardCodesOut)
async def get_card_codes(card_id: str, store: Store):
    codes = await card_codes(store, card_id)
    if codes is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown card")
    return CardCodesOut(id=card_id, codes=codes)


@router.get("/{card_id}/challenge", response_model=CardChallengeOut)
async def get_card_challenge(card_id: str, store: Store):
    index = await card_select(store, card_id)
    if index is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="no usable code on card"
        )
    return CardChallengeOut(index=index)


@router.get("/{card_id}/remaining", response_model=CardRemainingOut)
async def get_card_remaining(card_id: str, store: Store):
    return CardRemainingOut(remaining=await card_remaining(store, card_id))


@router.post("/{card_id}/validate", response_model=ValidOut)
async def post_validate_card(card_id: str, body: CardValidateIn, store: Store):
    valid = await card_validate(store, card_id, body.index, body.otp)
    return ValidOut(valid=valid)
