from __future__ import annotations

import logging
from typing import Any

import onetime.domain.services as domain_services
from onetime.domain.entities import OtpRecord
from onetime.domain.ports.otp_cache import OtpCachePort

logger = logging.getLogger(__name__)

DEFAULT_LENGTH = 6
DEFAULT_TTL_SECONDS = 480
DEFAULT_KEY_PREFIX = "otp-"


def otp_key(action: str, key_prefix: str = DEFAULT_KEY_PREFIX) -> str:
    # Same action -> same key: the action is a namespace, not a unique token.
    return key_prefix + action


async def generate_otp(
    cache: OtpCachePort,
    action: str,
    data: Any = None,
    length: int = DEFAULT_LENGTH,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    key_prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """
    Generate a one-time password for `action`, optionally bound to `data`.

    The password is stored in the cache for `ttl_seconds` and returned in
    plaintext; delivering it to the user is up to the caller.
    """
    if ttl_seconds < 1:
        raise ValueError("ttl_seconds must be >= 1")

    password = domain_services.random_string(length)
    record = OtpRecord(
        password=password,
        data_digest=domain_services.data_digest(data) if data is not None else None,
    )
    await cache.set(otp_key(action, key_prefix), record, ttl_seconds)
    logger.info(
        "otp generated",
        extra={"action": action, "ttl": ttl_seconds, "bound": data is not None},
    )
    return password


async def validate_otp(
    cache: OtpCachePort,
    otp: str,
    action: str,
    data: Any = None,
    key_prefix: str = DEFAULT_KEY_PREFIX,
    consume_on_success: bool = False,
) -> bool:
    """
    True if `otp` is the live password for `action` (and `data`, when the
    password was bound to data at generation).

    A missing/expired entry and a wrong password both yield False. Unless
    `consume_on_success` is set the entry stays valid until it expires.
    """
    key = otp_key(action, key_prefix)
    record = await cache.get(key)
    if record is None:
        return False
    if not domain_services.secure_compare(record.password, otp):
        return False
    if record.data_digest is not None:
        try:
            supplied = domain_services.data_digest(data)
        except (TypeError, ValueError, RecursionError):
            logger.info("otp data not serializable", extra={"action": action})
            return False
        if not domain_services.secure_compare(record.data_digest, supplied):
            return False

    if consume_on_success:
        await cache.delete(key)
    return True
