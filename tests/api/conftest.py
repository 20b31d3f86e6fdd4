import pytest
from fastapi.testclient import TestClient

from onetime.main import create_app
from onetime.presentation.dependencies import (
    get_app_settings,
    get_card_store,
    get_otp_cache,
)
from onetime.settings import Settings
from tests.fakes import FakeOtpCache, MemoryCardStore


@pytest.fixture()
def app_and_deps():
    app = create_app()
    cache = FakeOtpCache()
    store = MemoryCardStore()
    settings = Settings(otp_ttl_seconds=60, otp_consume_on_success=False)

    app.dependency_overrides[get_otp_cache] = lambda: cache
    app.dependency_overrides[get_card_store] = lambda: store
    app.dependency_overrides[get_app_settings] = lambda: settings

    try:
        yield app, cache, store, settings
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _, _, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)
