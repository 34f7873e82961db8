"""Tests for the persisted watermark."""

from datetime import timedelta

import pytest

from drive_backup.config.settings import BackupConfig, SettingsStore
from drive_backup.exceptions import ConfigurationError, UninitializedWatermarkError
from drive_backup.sync.watermark import WatermarkStore

from conftest import T0


@pytest.mark.asyncio
async def test_fresh_store_is_uninitialized(settings):
    store = WatermarkStore(settings)

    assert not await store.is_initialized()
    assert await store.current() is None


@pytest.mark.asyncio
async def test_advance_before_initialization_fails(settings):
    store = WatermarkStore(settings)

    with pytest.raises(UninitializedWatermarkError):
        await store.advance(T0)


@pytest.mark.asyncio
async def test_mark_initialized_is_written_through(settings):
    store = WatermarkStore(settings)

    assert await store.mark_initialized(T0)

    # A fresh reader sees the same state
    assert settings.read().google_drive.prev_update_time == T0.isoformat()
    assert await WatermarkStore(settings).current() == T0


@pytest.mark.asyncio
async def test_mark_initialized_only_once(settings):
    store = WatermarkStore(settings)
    await store.mark_initialized(T0)

    assert not await store.mark_initialized(T0 + timedelta(hours=1))
    assert await store.current() == T0


@pytest.mark.asyncio
async def test_advance_returns_previous_and_persists(settings):
    store = WatermarkStore(settings)
    await store.mark_initialized(T0)
    later = T0 + timedelta(hours=2)

    assert await store.advance(later) == T0
    assert await store.current() == later
    assert settings.read().google_drive.prev_update_time == later.isoformat()


@pytest.mark.asyncio
async def test_watermark_never_regresses(settings):
    store = WatermarkStore(settings)
    await store.mark_initialized(T0)
    await store.advance(T0 + timedelta(hours=1))

    await store.advance(T0)

    assert await store.current() == T0 + timedelta(hours=1)


@pytest.mark.asyncio
async def test_snapshot_is_detached(settings):
    store = WatermarkStore(settings)
    snapshot = await store.snapshot()
    snapshot.google_drive.prefix = "/elsewhere"

    assert (await store.snapshot()).google_drive.prefix != "/elsewhere"


@pytest.mark.asyncio
async def test_corrupt_stored_value_is_reported(tmp_path):
    settings = SettingsStore(tmp_path / "config.yml")
    config = BackupConfig()
    config.google_drive.prev_update_time = "not a timestamp"
    settings.write(config)

    with pytest.raises(ConfigurationError):
        await WatermarkStore(settings).current()


def _failing_write(config):
    raise ConfigurationError("Failed to write config file: disk full")


@pytest.mark.asyncio
async def test_failed_initial_write_leaves_store_uninitialized(settings, monkeypatch):
    store = WatermarkStore(settings)
    monkeypatch.setattr(settings, 'write', _failing_write)

    with pytest.raises(ConfigurationError):
        await store.mark_initialized(T0)

    assert not await store.is_initialized()
    assert await store.current() is None


@pytest.mark.asyncio
async def test_failed_advance_keeps_previous_watermark(settings, monkeypatch):
    store = WatermarkStore(settings)
    await store.mark_initialized(T0)
    monkeypatch.setattr(settings, 'write', _failing_write)

    with pytest.raises(ConfigurationError):
        await store.advance(T0 + timedelta(hours=1))

    assert await store.current() == T0
    assert (await store.snapshot()).google_drive.prev_update_time == T0.isoformat()
