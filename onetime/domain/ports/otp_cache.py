from typing import Protocol

from onetime.domain.entities import OtpRecord


class OtpCachePort(Protocol):
    async def set(self, key: str, record: OtpRecord, ttl_seconds: int) -> None:
        """Store/replace the record under `key` with TTL=ttl_seconds."""

    async def get(self, key: str) -> OtpRecord | None:
        """The stored record, or None when absent or expired."""

    async def delete(self, key: str) -> None:
        """Drop the record (only used when OTPs are consumed on success)."""
