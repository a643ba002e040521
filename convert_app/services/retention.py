import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Iterable, List, Optional, Set

from fastapi import Request

from ..core.storage import StorageAreas

logger = logging.getLogger(__name__)


def sweep(directories: Iterable[Path], max_age_seconds: float, now: Optional[float] = None) -> List[Path]:
    """
    Delete files older than ``max_age_seconds`` from each directory.

    Best effort: entries that cannot be listed, stat'ed or removed are
    skipped. Returns the paths that were deleted.
    """
    now = time.time() if now is None else now
    removed = []
    for directory in directories:
        try:
            entries = list(os.scandir(directory))
        except OSError:
            continue

        for entry in entries:
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                if now - entry.stat(follow_symlinks=False).st_mtime <= max_age_seconds:
                    continue
                os.remove(entry.path)
            except OSError:
                continue
            removed.append(Path(entry.path))
            logger.info(f"Removed expired file {entry.name}")
    return removed


class RetentionSweeper:
    """Periodically reclaims stale files from the intake and output areas."""

    def __init__(self, storage: StorageAreas, interval_seconds: float, max_age_seconds: float):
        self.storage = storage
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self) -> List[Path]:
        return await asyncio.to_thread(sweep, self.storage.directories, self.max_age_seconds)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            removed = await self.sweep_once()
            if removed:
                logger.info(f"Retention sweep removed {len(removed)} file(s)")

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None


class DeferredRemover:
    """Deletes downloaded artifacts after a grace period."""

    def __init__(self, storage: StorageAreas, delay_seconds: float):
        self.storage = storage
        self.delay_seconds = delay_seconds
        self._pending: Set[asyncio.TimerHandle] = set()

    async def schedule(self, path: Path) -> None:
        loop = asyncio.get_running_loop()
        handle = None

        def _remove():
            self._pending.discard(handle)
            if self.storage.remove_quietly(path):
                logger.info(f"Removed downloaded file {Path(path).name}")

        handle = loop.call_later(self.delay_seconds, _remove)
        self._pending.add(handle)

    def cancel_all(self) -> None:
        for handle in list(self._pending):
            handle.cancel()
        self._pending.clear()


def get_remover(request: Request) -> DeferredRemover:
    return request.app.state.remover
