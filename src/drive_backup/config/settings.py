"""Configuration settings and models for the backup application."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError

PLACEHOLDER_CLIENT_ID = "put_your_client_id_here"
PLACEHOLDER_CLIENT_SECRET = "put_your_secret_here"


class GoogleDriveConfig(BaseModel):
    """Configuration for the Google Drive source."""
    client_id: str = PLACEHOLDER_CLIENT_ID
    client_secret: str = PLACEHOLDER_CLIENT_SECRET
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None  # Static bearer token, skips the refresh grant
    prefix: str = "./drive"
    prev_update_time: Optional[str] = None  # RFC 3339 watermark of the last pass

    @field_validator('prefix')
    @classmethod
    def validate_prefix(cls, v):
        if not v or not v.strip():
            raise ValueError('prefix must not be empty')
        return v


class SyncOptions(BaseModel):
    """Synchronization options."""
    parallel_downloads: int = 8
    request_timeout: int = 60  # seconds
    page_size: int = 1000

    @field_validator('parallel_downloads', 'request_timeout', 'page_size')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('must be at least 1')
        return v


class BackupConfig(BaseModel):
    """Main configuration class."""
    backup_interval: int = 1800  # seconds between scheduled passes
    google_drive: GoogleDriveConfig = Field(default_factory=GoogleDriveConfig)
    sync_options: SyncOptions = Field(default_factory=SyncOptions)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    @field_validator('backup_interval')
    @classmethod
    def validate_interval(cls, v):
        if v < 1:
            raise ValueError('backup_interval must be at least 1 second')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'unknown log level {v!r}')
        return v

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "BackupConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def to_yaml(self, config_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        The document is written to a temporary sibling, flushed to disk and
        moved over the target, so readers never observe a half-written file.
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{config_path.name}.", suffix=".tmp", dir=config_path.parent
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                yaml.dump(self.model_dump(exclude_none=True), f, default_flow_style=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, config_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def is_placeholder(self) -> bool:
        """Whether the Drive credentials still hold the generated dummy values."""
        drive = self.google_drive
        return (
            drive.access_token is None
            and (drive.client_id == PLACEHOLDER_CLIENT_ID
                 or drive.client_secret == PLACEHOLDER_CLIENT_SECRET)
        )


class SettingsStore:
    """Path-bound settings collaborator.

    ``read`` loads the YAML file, ``write`` persists it durably before
    returning.
    """

    def __init__(self, config_path: Union[str, Path]):
        self.config_path = Path(config_path)

    def exists(self) -> bool:
        return self.config_path.exists()

    def read(self) -> BackupConfig:
        try:
            return BackupConfig.from_yaml(self.config_path)
        except FileNotFoundError as e:
            raise ConfigurationError(str(e)) from e
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ConfigurationError(f"Failed to parse config file {self.config_path}: {e}") from e

    def write(self, config: BackupConfig) -> None:
        try:
            config.to_yaml(self.config_path)
        except OSError as e:
            raise ConfigurationError(f"Failed to write config file {self.config_path}: {e}") from e

    def init_default(self) -> BackupConfig:
        """Write a placeholder configuration, returning it."""
        config = BackupConfig()
        self.write(config)
        return config
