from __future__ import annotations

from redis.asyncio import Redis

from onetime.domain.entities import OtpRecord
from onetime.domain.ports.otp_cache import OtpCachePort


class RedisOtpCache(OtpCachePort):
    """
    OTP records as Redis hashes: field `pw` always, field `hash` only for
    OTPs bound to context data. Expiry is the key's TTL.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = "") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def set(self, key: str, record: OtpRecord, ttl_seconds: int) -> None:
        mapping = {"pw": record.password}
        if record.data_digest is not None:
            mapping["hash"] = record.data_digest

        redis_key = self._key(key)
        # replace, never merge: a stale `hash` field must not survive
        pipe = self._redis.pipeline(transaction=True)
        pipe.delete(redis_key)
        pipe.hset(redis_key, mapping=mapping)
        pipe.expire(redis_key, ttl_seconds)
        await pipe.execute()

    async def get(self, key: str) -> OtpRecord | None:
        stored = await self._redis.hgetall(self._key(key))
        if not stored or not stored.get("pw"):
            return None
        return OtpRecord(password=stored["pw"], data_digest=stored.get("hash"))

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))
