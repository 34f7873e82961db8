"""
Google Drive Backup Application

Scheduled, incremental backups of a Google Drive to local disk, with
export of native documents that cannot be downloaded directly.
"""

__version__ = "1.0.0"
__author__ = "Drive Backup Tool"
__description__ = "Incremental Google Drive backups to local disk"

from .config.settings import BackupConfig, SettingsStore
from .sync.backup_manager import DriveBackup

__all__ = ["BackupConfig", "DriveBackup", "SettingsStore"]
