"""Long-lived worker running one backup pass per scheduler signal."""

import asyncio
import logging
from typing import Optional

from ..exceptions import DriveBackupError
from .backup_manager import DriveBackup
from .orchestrator import BackupReport

logger = logging.getLogger(__name__)

_STOP = object()


class BackupWorker:
    """Consume "time to run" signals and execute passes one at a time.

    Signals arriving while a pass is running are coalesced into a single
    pending run.
    """

    def __init__(self, engine: DriveBackup):
        self.engine = engine
        self.passes = 0
        self.last_report: Optional[BackupReport] = None
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._stopped = False

    def signal(self) -> bool:
        """Request a pass.

        Returns:
            False if a pass was already pending and this signal was merged into it
        """
        try:
            self._queue.put_nowait(None)
            return True
        except asyncio.QueueFull:
            logger.debug("A backup pass is already pending, skipping signal")
            return False

    def stop(self) -> None:
        self._stopped = True
        try:
            self._queue.put_nowait(_STOP)
        except asyncio.QueueFull:
            pass  # the pending tick is consumed and the loop exits on the flag

    async def run(self) -> None:
        logger.info("Backup worker started")
        while not self._stopped:
            item = await self._queue.get()
            if item is _STOP or self._stopped:
                break
            await self._run_pass()
        logger.info("Backup worker stopped")

    async def _run_pass(self) -> None:
        try:
            self.last_report = await self.engine.backup_changes()
        except (DriveBackupError, OSError) as e:
            # Retried on the next scheduled tick
            logger.error(f"Backup pass failed: {e}")
            return
        finally:
            self.passes += 1

        if self.last_report.failed:
            logger.warning(f"Backup pass finished with {self.last_report.failed} failed file(s)")


async def interval_ticker(worker: BackupWorker, interval: float,
                          max_ticks: Optional[int] = None) -> None:
    """Signal ``worker`` immediately and then every ``interval`` seconds."""
    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        worker.signal()
        ticks += 1
        await asyncio.sleep(interval)
