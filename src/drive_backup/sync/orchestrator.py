"""Concurrent download of a batch of changed files."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import DriveBackupError, TransportError
from ..sources.drive_operations import GoogleDriveClient, RemoteFile
from ..utils.file_utils import FileHelper
from .export_fallback import ExportFallback
from .path_resolver import PathResolver

logger = logging.getLogger(__name__)


class DownloadStatus(str, Enum):
    """How a download task ended."""
    DIRECT = "direct"
    EXPORTED = "exported"
    FAILED = "failed"


@dataclass
class DownloadTask:
    """One changed file and the directory its folder path is rooted at."""
    file: RemoteFile
    destination_directory: Path


@dataclass
class FileResult:
    """Outcome of a single download task."""
    file_id: str
    name: str
    status: DownloadStatus
    path: Optional[Path] = None
    size: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status != DownloadStatus.FAILED


@dataclass
class BackupReport:
    """Per-file results of one backup pass."""
    results: List[FileResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return len([r for r in self.results if r.succeeded])

    @property
    def failed(self) -> int:
        return len([r for r in self.results if not r.succeeded])

    @property
    def exported(self) -> int:
        return len([r for r in self.results if r.status == DownloadStatus.EXPORTED])

    @property
    def bytes_written(self) -> int:
        return sum(r.size for r in self.results)

    @property
    def failures(self) -> List[FileResult]:
        return [r for r in self.results if not r.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'files_processed': self.total,
            'files_downloaded': self.succeeded - self.exported,
            'files_exported': self.exported,
            'files_failed': self.failed,
            'bytes_written': self.bytes_written,
            'errors': [f"{r.name} ({r.file_id}): {r.error}" for r in self.failures],
        }


ProgressCallback = Callable[[FileResult, int, int], None]


class DownloadOrchestrator:
    """Fan out downloads of independent files with bounded concurrency."""

    def __init__(self, client: GoogleDriveClient, path_resolver: PathResolver,
                 export_fallback: Optional[ExportFallback] = None,
                 max_concurrency: int = 8,
                 progress_callback: Optional[ProgressCallback] = None):
        """Initialize the orchestrator.

        Args:
            client: Drive client used for raw downloads
            path_resolver: Resolver for the folder path of each file
            export_fallback: Fallback for files without raw content
            max_concurrency: Maximum number of files processed at once
            progress_callback: Called with (result, completed, total) per finished task
        """
        self.client = client
        self.path_resolver = path_resolver
        self.export_fallback = export_fallback or ExportFallback(client)
        self.max_concurrency = max_concurrency
        self.progress_callback = progress_callback

    async def run(self, tasks: List[DownloadTask]) -> BackupReport:
        """Download every task, never letting one failure abort the rest."""
        report = BackupReport()
        if not tasks:
            return report

        semaphore = asyncio.Semaphore(self.max_concurrency)
        completed = 0

        async def _worker(task: DownloadTask) -> None:
            nonlocal completed
            async with semaphore:
                result = await self._download(task)
            report.results.append(result)
            completed += 1
            if self.progress_callback:
                self.progress_callback(result, completed, len(tasks))

        await asyncio.gather(*(_worker(task) for task in tasks))

        logger.info(
            f"Batch finished: {report.succeeded}/{report.total} files saved "
            f"({report.exported} exported), {report.failed} failed"
        )
        return report

    async def _download(self, task: DownloadTask) -> FileResult:
        file = task.file
        name = file.name or file.id
        logger.debug(f"Downloading {name} ({file.id})")

        try:
            segments = await self.path_resolver.resolve_path(file.id)
            directory = task.destination_directory.joinpath(
                *(FileHelper.sanitize_filename(segment) for segment in segments)
            )
            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

            target = directory / FileHelper.sanitize_filename(name)
            try:
                content = await asyncio.to_thread(self.client.get_file_content, file.id)
                status = DownloadStatus.DIRECT
            except TransportError as e:
                logger.debug(f"Direct download of {name} ({file.id}) failed: {e}, trying export")
                exported = await self.export_fallback.try_export(file.id)
                if exported is None:
                    raise TransportError(f"Download failed and no export format is available: {e}")
                content, extension = exported
                target = target.with_name(f"{target.name}.{extension}")
                status = DownloadStatus.EXPORTED

            await asyncio.to_thread(FileHelper.write_atomic, target, content)

        except (DriveBackupError, OSError) as e:
            logger.warning(f"Failed to back up {name} ({file.id}): {e}")
            return FileResult(file.id, name, DownloadStatus.FAILED, error=str(e))

        logger.debug(f"Saved {name} ({file.id}) to {target}")
        return FileResult(file.id, name, status, path=target, size=len(content))
