"""Sync engine for backup operations."""

from .backup_manager import DriveBackup
from .orchestrator import BackupReport, DownloadOrchestrator, DownloadTask
from .watermark import WatermarkStore
from .worker import BackupWorker

__all__ = [
    "BackupReport",
    "BackupWorker",
    "DownloadOrchestrator",
    "DownloadTask",
    "DriveBackup",
    "WatermarkStore",
]
