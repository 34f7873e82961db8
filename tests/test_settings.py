"""Tests for configuration loading and durable writes."""

import pytest
import yaml

from drive_backup.config.settings import BackupConfig, SettingsStore, SyncOptions
from drive_backup.exceptions import ConfigurationError


def test_default_config_round_trips(tmp_path):
    store = SettingsStore(tmp_path / "config.yml")

    written = store.init_default()
    loaded = store.read()

    assert loaded == written
    assert loaded.google_drive.prefix == "./drive"
    assert loaded.google_drive.prev_update_time is None
    assert loaded.is_placeholder()


def test_write_leaves_no_temporary_files(tmp_path):
    store = SettingsStore(tmp_path / "config.yml")
    config = BackupConfig()
    config.google_drive.prev_update_time = "2024-01-01T00:00:00+00:00"

    store.write(config)
    store.write(config)

    assert [p.name for p in tmp_path.iterdir()] == ["config.yml"]
    raw = yaml.safe_load((tmp_path / "config.yml").read_text(encoding="utf-8"))
    # Stored as a string, not coerced into a YAML timestamp
    assert raw["google_drive"]["prev_update_time"] == "2024-01-01T00:00:00+00:00"


def test_partial_file_gets_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("google_drive:\n  client_id: abc\n  client_secret: xyz\n", encoding="utf-8")

    config = SettingsStore(path).read()

    assert config.google_drive.client_id == "abc"
    assert config.sync_options.parallel_downloads == SyncOptions().parallel_downloads
    assert config.backup_interval == 1800


def test_missing_file_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        SettingsStore(tmp_path / "absent.yml").read()


def test_invalid_values_are_rejected(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("sync_options:\n  parallel_downloads: 0\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        SettingsStore(path).read()


def test_malformed_yaml_is_rejected(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("google_drive: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        SettingsStore(path).read()


def test_write_failure_is_a_configuration_error(tmp_path, monkeypatch):
    store = SettingsStore(tmp_path / "config.yml")

    def failing_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("drive_backup.config.settings.os.replace", failing_replace)

    with pytest.raises(ConfigurationError) as excinfo:
        store.write(BackupConfig())
    assert isinstance(excinfo.value.__cause__, OSError)
    # The temporary sibling is cleaned up
    assert list(tmp_path.iterdir()) == []


def test_log_level_is_normalized_and_checked(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("log_level: debug\n", encoding="utf-8")
    assert SettingsStore(path).read().log_level == "DEBUG"

    path.write_text("log_level: chatty\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        SettingsStore(path).read()
