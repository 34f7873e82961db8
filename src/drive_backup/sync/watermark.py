"""Persistent "last successful backup" watermark."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..config.settings import BackupConfig, SettingsStore
from ..exceptions import ConfigurationError, UninitializedWatermarkError
from ..sources.drive_operations import parse_timestamp

logger = logging.getLogger(__name__)


class WatermarkStore:
    """Own the shared settings object and the watermark stored inside it.

    All access goes through a single asyncio lock held only for the
    duration of an in-memory read or a read-modify-write plus the durable
    settings write; it is never held across network I/O.
    """

    def __init__(self, settings: SettingsStore, config: Optional[BackupConfig] = None):
        """Initialize the store.

        Args:
            settings: Settings collaborator used for durable writes
            config: Already loaded configuration (read from ``settings`` if omitted)
        """
        self.settings = settings
        self._config = config if config is not None else settings.read()
        self._lock = asyncio.Lock()

    def _stored(self) -> Optional[datetime]:
        raw = self._config.google_drive.prev_update_time
        if raw is None:
            return None
        parsed = parse_timestamp(raw)
        if parsed is None:
            raise ConfigurationError(f"Stored update time is invalid: {raw!r}")
        return parsed

    def _persist(self, value: datetime) -> None:
        # In-memory state only changes once the durable write has succeeded
        updated = self._config.model_copy(deep=True)
        updated.google_drive.prev_update_time = value.isoformat()
        self.settings.write(updated)
        self._config = updated

    async def snapshot(self) -> BackupConfig:
        """Return a deep copy of the settings for use during one pass."""
        async with self._lock:
            return self._config.model_copy(deep=True)

    async def current(self) -> Optional[datetime]:
        async with self._lock:
            return self._stored()

    async def is_initialized(self) -> bool:
        async with self._lock:
            return self._config.google_drive.prev_update_time is not None

    async def mark_initialized(self, now: datetime) -> bool:
        """Record the first completed backup.

        Returns:
            True if the watermark was set, False if it was already initialized
        """
        async with self._lock:
            if self._config.google_drive.prev_update_time is not None:
                logger.debug("Watermark already initialized, leaving it untouched")
                return False
            self._persist(now)
            logger.info(f"Initialized watermark at {now.isoformat()}")
            return True

    async def advance(self, now: datetime) -> datetime:
        """Move the watermark forward to ``now``.

        The stored value never moves backwards: an earlier ``now`` keeps the
        current watermark (and still rewrites it).

        Returns:
            The watermark in effect before this call

        Raises:
            UninitializedWatermarkError: If no initial backup has completed
        """
        async with self._lock:
            previous = self._stored()
            if previous is None:
                raise UninitializedWatermarkError()

            if now < previous:
                logger.warning(
                    f"Clock is behind the stored watermark ({now.isoformat()} < "
                    f"{previous.isoformat()}), keeping the stored value"
                )
                now = previous

            self._persist(now)
            logger.debug(f"Advanced watermark {previous.isoformat()} -> {now.isoformat()}")
            return previous
