import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from onetime.infrastructure.redis_cache.pool import close_redis, get_redis
from onetime.logging import setup_logging
from onetime.presentation.api import api
from onetime.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    get_redis()
    Path(settings.otp_data_dir).mkdir(parents=True, exist_ok=True)
    logger.info("startup", extra={"data_dir": settings.otp_data_dir})

    try:
        yield
    finally:
        # shutdown
        await close_redis()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="One-time Password API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.include_router(api)
    return app


app = create_app()
