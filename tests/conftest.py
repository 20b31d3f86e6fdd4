import pytest

from onetime.infrastructure.card_store.file_store import FileCardStore
from tests.fakes import FakeClock, FakeErroredOtpCache, FakeOtpCache, MemoryCardStore


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cache(clock):
    return FakeOtpCache(clock)


@pytest.fixture()
def errored_cache():
    return FakeErroredOtpCache()


@pytest.fixture()
def memory_store():
    return MemoryCardStore()


@pytest.fixture()
def file_store(tmp_path):
    return FileCardStore(tmp_path / "cards")


@pytest.fixture()
def fixed_password(monkeypatch):
    """
    Make generated passwords deterministic.
    You can override in a specific test by re-monkeypatching.
    """
    from onetime.domain import services as domain_services

    monkeypatch.setattr(domain_services, "random_string", lambda length: "Ab3Ab3")
    yield "Ab3Ab3"
