"""Main backup manager orchestrating the Drive backup process."""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..auth.google_auth import GoogleDriveAuth
from ..config.settings import BackupConfig, SettingsStore
from ..exceptions import UninitializedWatermarkError
from ..sources.drive_operations import GoogleDriveClient, RemoteFile
from ..utils.file_utils import FileHelper
from ..utils.logging import TimedOperation
from .change_filter import select_all, select_changed
from .export_fallback import ExportFallback
from .orchestrator import BackupReport, DownloadOrchestrator, DownloadTask, ProgressCallback
from .path_resolver import PathResolver
from .watermark import WatermarkStore

# Module logger
logger = logging.getLogger(__name__)

BASE_DIRECTORY = "base"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DriveBackup:
    """Incremental Google Drive backup engine.

    The first pass ever downloads the whole drive into ``<prefix>/base``;
    every later pass downloads files created or modified since the stored
    watermark into ``<prefix>/<run-timestamp>``. The watermark is persisted
    only once the download phase of a pass has been attempted, and passes
    never overlap.
    """

    def __init__(self, client: GoogleDriveClient, watermark: WatermarkStore,
                 parallel_downloads: int = 8,
                 clock: Callable[[], datetime] = utc_now,
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize the engine.

        Args:
            client: Drive client
            watermark: Store owning the shared settings and watermark
            parallel_downloads: Maximum number of files downloaded at once
            clock: Source of the current UTC time
            progress_callback: Forwarded to each pass's DownloadOrchestrator
        """
        self.client = client
        self.watermark = watermark
        self.parallel_downloads = parallel_downloads
        self.clock = clock
        self.progress_callback = progress_callback
        self._pass_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: SettingsStore,
                      config: Optional[BackupConfig] = None, **kwargs) -> "DriveBackup":
        """Build an engine and its collaborators from the settings file."""
        config = config if config is not None else settings.read()
        options = config.sync_options
        auth = GoogleDriveAuth.from_config(config.google_drive, timeout=options.request_timeout)
        client = GoogleDriveClient(auth, timeout=options.request_timeout, page_size=options.page_size)
        kwargs.setdefault('parallel_downloads', options.parallel_downloads)
        return cls(client, WatermarkStore(settings, config), **kwargs)

    async def initial_backup(self) -> Optional[BackupReport]:
        """Perform the one-time full backup.

        Returns:
            The pass report, or None if the system was already initialized
        """
        async with self._pass_lock:
            return await self._initial_backup()

    async def backup_changes(self) -> BackupReport:
        """Download everything changed since the last pass.

        Falls back to the initial backup when no pass has ever completed.
        """
        async with self._pass_lock:
            if not await self.watermark.is_initialized():
                logger.info("No previous backup found, performing initial backup")
                return await self._initial_backup()
            return await self._incremental_backup()

    async def _list(self) -> Tuple[List[RemoteFile], List[RemoteFile]]:
        """Fetch the full listing, returning it along with its non-folder entries.

        Folders are recreated from each file's path rather than downloaded.
        """
        listing = await asyncio.to_thread(self.client.list_files)
        files = [f for f in listing if not f.is_folder]
        logger.debug(f"Listing returned {len(listing)} objects, {len(files)} of them files")
        return listing, files

    async def _initial_backup(self) -> Optional[BackupReport]:
        logger.debug("Checking if initial backup is required")
        if await self.watermark.is_initialized():
            logger.debug("No initial backup required")
            return None

        pass_start = self.clock()
        config = await self.watermark.snapshot()
        base_directory = Path(config.google_drive.prefix) / BASE_DIRECTORY

        with TimedOperation(logger, "initial backup of Google Drive"):
            listing, files = await self._list()
            selected = select_all(files)
            logger.info(f"The initial backup consists of {len(selected)} file(s)")
            report = await self._download(listing, selected, base_directory)

        await self.watermark.mark_initialized(pass_start)
        return report

    async def _incremental_backup(self) -> BackupReport:
        pass_start = self.clock()
        since = await self.watermark.current()
        if since is None:
            raise UninitializedWatermarkError()

        config = await self.watermark.snapshot()
        run_directory = (Path(config.google_drive.prefix)
                         / FileHelper.run_directory_name(pass_start))

        with TimedOperation(logger, "pulling Google Drive updates"):
            listing, files = await self._list()
            selected = select_changed(files, since)
            logger.info(f"Found {len(selected)} file(s) changed since {since.isoformat()}")
            report = await self._download(listing, selected, run_directory)

        previous = await self.watermark.advance(pass_start)
        logger.debug(f"Watermark moved from {previous.isoformat()} to {pass_start.isoformat()}")
        return report

    async def _download(self, listing: List[RemoteFile], selected: List[Tuple[str, str]],
                        directory: Path) -> BackupReport:
        if not selected:
            return BackupReport()

        by_id = {f.id: f for f in listing}
        tasks = [DownloadTask(by_id[file_id], directory) for file_id, _ in selected]

        # The listing seeds the resolver, saving a round trip per known ancestor
        orchestrator = DownloadOrchestrator(
            self.client,
            PathResolver(self.client, known=listing),
            ExportFallback(self.client),
            max_concurrency=self.parallel_downloads,
            progress_callback=self.progress_callback,
        )
        report = await orchestrator.run(tasks)

        for failure in report.failures:
            logger.warning(f"Not backed up: {failure.name} ({failure.file_id}): {failure.error}")
        return report
