import pytest

from onetime.application.otp import generate_otp, otp_key, validate_otp
from onetime.domain.services import OTP_ALPHABET


def _alter_one_char(password: str, position: int) -> str:
    replacement = "a" if password[position] != "a" else "b"
    return password[:position] + replacement + password[position + 1 :]


@pytest.mark.asyncio
async def test_generate_stores_record_under_action_key(cache):
    password = await generate_otp(cache, "delete-account")

    assert len(password) == 6 and set(password) <= set(OTP_ALPHABET)
    assert len(cache.set_calls) == 1
    key, record, ttl = cache.set_calls[0]
    assert key == "otp-delete-account"
    assert record.password == password
    assert record.data_digest is None
    assert ttl == 480


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [1, 4, 6, 12, 40])
async def test_generate_then_validate_roundtrip(cache, length):
    password = await generate_otp(cache, "login", length=length)
    assert len(password) == length
    assert await validate_otp(cache, password, "login") is True


@pytest.mark.asyncio
async def test_any_single_character_change_fails(cache):
    password = await generate_otp(cache, "login", length=8)
    for position in range(len(password)):
        assert await validate_otp(cache, _alter_one_char(password, position), "login") is False


@pytest.mark.asyncio
async def test_wrong_action_fails(cache):
    password = await generate_otp(cache, "login")
    assert await validate_otp(cache, password, "transfer") is False


@pytest.mark.asyncio
async def test_bound_data_must_match(cache):
    data = {"to": "acct-42", "amount": 100}
    password = await generate_otp(cache, "transfer", data=data)

    _, record, _ = cache.set_calls[0]
    assert record.data_digest is not None

    assert await validate_otp(cache, password, "transfer", data={"amount": 100, "to": "acct-42"}) is True
    assert await validate_otp(cache, password, "transfer", data={"to": "acct-42", "amount": 101}) is False
    assert await validate_otp(cache, password, "transfer") is False


@pytest.mark.asyncio
async def test_unbound_otp_ignores_supplied_data(cache):
    password = await generate_otp(cache, "login")
    assert await validate_otp(cache, password, "login", data={"anything": 1}) is True


@pytest.mark.asyncio
async def test_expired_otp_fails(cache, clock):
    password = await generate_otp(cache, "login", ttl_seconds=60)

    clock.advance(59)
    assert await validate_otp(cache, password, "login") is True

    clock.advance(1)
    assert await validate_otp(cache, password, "login") is False


@pytest.mark.asyncio
async def test_missing_entry_fails(cache):
    assert await validate_otp(cache, "whatever", "never-generated") is False


@pytest.mark.asyncio
async def test_validate_is_replayable_until_expiry_by_default(cache):
    password = await generate_otp(cache, "login")
    assert await validate_otp(cache, password, "login") is True
    assert await validate_otp(cache, password, "login") is True
    assert cache.deleted == []


@pytest.mark.asyncio
async def test_consume_on_success_makes_otp_single_use(cache):
    password = await generate_otp(cache, "login")

    assert await validate_otp(cache, "wrong!", "login", consume_on_success=True) is False
    assert cache.deleted == []

    assert await validate_otp(cache, password, "login", consume_on_success=True) is True
    assert cache.deleted == ["otp-login"]
    assert await validate_otp(cache, password, "login", consume_on_success=True) is False


@pytest.mark.asyncio
async def test_regenerate_replaces_previous_password(cache, monkeypatch):
    from onetime.domain import services as domain_services

    monkeypatch.setattr(domain_services, "random_string", lambda length: "first1")
    first = await generate_otp(cache, "login")
    monkeypatch.setattr(domain_services, "random_string", lambda length: "second")
    second = await generate_otp(cache, "login")

    assert await validate_otp(cache, first, "login") is False
    assert await validate_otp(cache, second, "login") is True


@pytest.mark.asyncio
async def test_custom_key_prefix(cache, fixed_password):
    await generate_otp(cache, "login", key_prefix="tenant-a:otp-")
    assert cache.set_calls[0][0] == "tenant-a:otp-login"
    assert await validate_otp(cache, fixed_password, "login") is False
    assert await validate_otp(cache, fixed_password, "login", key_prefix="tenant-a:otp-") is True


@pytest.mark.asyncio
async def test_cache_error_propagates(errored_cache):
    with pytest.raises(RuntimeError, match="Redis down"):
        await generate_otp(errored_cache, "login")


@pytest.mark.asyncio
async def test_invalid_ttl_and_length_raise(cache):
    with pytest.raises(ValueError):
        await generate_otp(cache, "login", ttl_seconds=0)
    with pytest.raises(ValueError):
        await generate_otp(cache, "login", length=0)
    assert cache.set_calls == []


def test_otp_key_is_a_namespace():
    assert otp_key("login") == "otp-login"
    assert otp_key("login", "x:") == "x:login"


@pytest.mark.asyncio
async def test_mixed_key_types_validate_to_a_boolean(cache):
    password = await generate_otp(cache, "transfer", data={"b": 2})

    assert await validate_otp(cache, password, "transfer", data={1: "x", "b": 2}) is False
    assert await validate_otp(cache, password, "transfer", data={"b": 2}) is True


@pytest.mark.asyncio
async def test_mixed_key_types_can_be_bound(cache):
    data = {1: "x", "b": 2, None: [True]}
    password = await generate_otp(cache, "transfer", data=data)

    assert await validate_otp(cache, password, "transfer", data=dict(data)) is True
    assert await validate_otp(cache, password, "transfer", data={1: "y", "b": 2, None: [True]}) is False


@pytest.mark.asyncio
async def test_self_referencing_data_fails_closed(cache):
    password = await generate_otp(cache, "transfer", data={"b": 2})
    looped: dict = {"b": 2}
    looped["self"] = looped

    assert await validate_otp(cache, password, "transfer", data=looped) is False
