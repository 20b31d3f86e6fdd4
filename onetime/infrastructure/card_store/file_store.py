from __future__ import annotations

import asyncio
import fcntl
import logging
import os
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from onetime.domain.ports.card_store import CardStorePort

logger = logging.getLogger(__name__)

FILE_PREFIX = "otp-card-"


class FileCardStore(CardStorePort):
    """
    One file per card: <data_dir>/otp-card-<card_id>.

    Writes truncate and rewrite the whole file under an exclusive flock.
    lock() serializes whole read-modify-write sequences, in-process with an
    asyncio.Lock and across processes with a flock on a sidecar .lock file.
    """

    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self._dir = Path(data_dir)
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def data_dir(self) -> Path:
        return self._dir

    def path(self, card_id: str) -> Path:
        if not card_id or "/" in card_id or "\\" in card_id or card_id in (".", ".."):
            raise ValueError(f"invalid card id: {card_id!r}")
        return self._dir / f"{FILE_PREFIX}{card_id}"

    async def exists(self, card_id: str) -> bool:
        return await asyncio.to_thread(self.path(card_id).is_file)

    async def read(self, card_id: str) -> str | None:
        path = self.path(card_id)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError:
            # undecodable bytes still count as a stored (corrupt) document
            return ""
        except OSError as exc:
            # unreadable (directory, permissions): reject it like a corrupt card
            logger.error("card read failed", extra={"path": str(path), "error": str(exc)})
            return ""

    async def write(self, card_id: str, payload: str) -> bool:
        return await asyncio.to_thread(self._write_locked, self.path(card_id), payload)

    @staticmethod
    def _write_locked(path: Path, payload: str) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as fh:
                fcntl.flock(fh, fcntl.LOCK_EX)
                try:
                    fh.write(payload)
                    fh.flush()
                    os.fsync(fh.fileno())
                finally:
                    fcntl.flock(fh, fcntl.LOCK_UN)
        except OSError as exc:
            logger.error("card write failed", extra={"path": str(path), "error": str(exc)})
            return False
        return True

    def _local_lock(self, card_id: str) -> asyncio.Lock:
        lock = self._locks.get(card_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[card_id] = lock
        return lock

    @asynccontextmanager
    async def lock(self, card_id: str) -> AsyncIterator[None]:
        lock_path = self.path(card_id).with_name(f"{FILE_PREFIX}{card_id}.lock")
        local = self._local_lock(card_id)
        async with local:
            fh = await asyncio.to_thread(self._acquire_file_lock, lock_path)
            try:
                yield
            finally:
                fcntl.flock(fh, fcntl.LOCK_UN)
                fh.close()

    @staticmethod
    def _acquire_file_lock(lock_path: Path):
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        fh = open(lock_path, "a")
        try:
            fcntl.flock(fh, fcntl.LOCK_EX)
        except OSError:
            fh.close()
            raise
        return fh
