"""Configuration management for the Drive backup application."""

from .settings import BackupConfig, GoogleDriveConfig, SettingsStore, SyncOptions

__all__ = ["BackupConfig", "GoogleDriveConfig", "SettingsStore", "SyncOptions"]
