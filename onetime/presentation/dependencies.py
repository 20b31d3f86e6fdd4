from typing import Annotated

from fastapi import Depends

from onetime.domain.ports.card_store import CardStorePort
from onetime.domain.ports.otp_cache import OtpCachePort
from onetime.infrastructure.card_store.file_store import FileCardStore
from onetime.infrastructure.redis_cache.otp_cache import RedisOtpCache
from onetime.infrastructure.redis_cache.pool import get_redis
from onetime.settings import Settings, get_settings


def get_app_settings() -> Settings:
    return get_settings()


def get_otp_cache() -> OtpCachePort:
    return RedisOtpCache(get_redis())


def get_card_store(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CardStorePort:
    return _card_store(settings.otp_data_dir)


_stores: dict[str, FileCardStore] = {}


def _card_store(data_dir: str) -> FileCardStore:
    # one store per directory, so its in-process card locks are shared
    store = _stores.get(data_dir)
    if store is None:
        store = _stores[data_dir] = FileCardStore(data_dir)
    return store
