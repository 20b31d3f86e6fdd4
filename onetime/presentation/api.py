from fastapi import APIRouter

from onetime.presentation.routers.v1.cards import router as cards_router
from onetime.presentation.routers.v1.otp import router as otp_router
from onetime.presentation.routes.health import router as health_router

api = APIRouter()
api.include_router(health_router)

# Add all v1 routers here
routers = (otp_router, cards_router)
for router in routers:
    api.include_router(router, prefix="/v1")
