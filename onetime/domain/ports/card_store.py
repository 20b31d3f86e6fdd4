from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol


class CardStorePort(Protocol):
    """
    Durable storage for encoded password cards, one document per card id.

    Usage:
        async with store.lock(card_id):
            payload = await store.read(card_id)
            ...
            await store.write(card_id, new_payload)
    """

    async def exists(self, card_id: str) -> bool:
        """True if a document is stored for card_id."""

    async def read(self, card_id: str) -> str | None:
        """Full stored document, or None if there is none."""

    async def write(self, card_id: str, payload: str) -> bool:
        """
        Create-or-truncate the document and write payload under an exclusive lock.
        Return False when the document could not be written.
        """

    def lock(self, card_id: str) -> AbstractAsyncContextManager[None]:
        """
        Exclusive access to card_id for a whole read-modify-write sequence.
        Not reentrant.
        """
