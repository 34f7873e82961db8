"""Shared fixtures for the Drive backup tests."""

import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from drive_backup.config.settings import BackupConfig, GoogleDriveConfig, SettingsStore  # noqa: E402
from drive_backup.exceptions import TransportError  # noqa: E402
from drive_backup.sources.drive_operations import FOLDER_MIME_TYPE, RemoteFile  # noqa: E402

T0 = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeDriveClient:
    """In-memory stand-in for GoogleDriveClient."""

    def __init__(self):
        self.objects: Dict[str, RemoteFile] = {}
        self.contents: Dict[str, bytes] = {}
        self.exports: Dict[str, Dict[str, bytes]] = {}
        self.hidden_metadata = set()
        self.list_error: Optional[Exception] = None
        self.metadata_calls: List[str] = []
        self.export_calls: List[tuple] = []
        self._lock = threading.Lock()

    def add(self, file_id: str, name: Optional[str], parent_id: Optional[str] = None,
            content: Optional[bytes] = None, exports: Optional[Dict[str, bytes]] = None,
            created: Optional[datetime] = T0, modified: Optional[datetime] = T0,
            mime_type: Optional[str] = "text/plain") -> RemoteFile:
        file = RemoteFile(file_id, name, parent_id, created, modified, mime_type)
        self.objects[file_id] = file
        if content is not None:
            self.contents[file_id] = content
        if exports:
            self.exports[file_id] = exports
        return file

    def add_folder(self, folder_id: str, name: Optional[str],
                   parent_id: Optional[str] = None) -> RemoteFile:
        return self.add(folder_id, name, parent_id, mime_type=FOLDER_MIME_TYPE)

    def list_files(self) -> List[RemoteFile]:
        if self.list_error:
            raise self.list_error
        return list(self.objects.values())

    def get_file_metadata(self, file_id: str) -> RemoteFile:
        with self._lock:
            self.metadata_calls.append(file_id)
        if file_id in self.hidden_metadata or file_id not in self.objects:
            raise TransportError(f"GET files/{file_id} failed: HTTP 404", status_code=404)
        return self.objects[file_id]

    def get_file_content(self, file_id: str) -> bytes:
        if file_id not in self.contents:
            raise TransportError(f"GET files/{file_id} failed: HTTP 403", status_code=403)
        return self.contents[file_id]

    def export_file(self, file_id: str, mime_type: str) -> bytes:
        with self._lock:
            self.export_calls.append((file_id, mime_type))
        formats = self.exports.get(file_id, {})
        if mime_type not in formats:
            raise TransportError(f"Export of {file_id} as {mime_type} failed: HTTP 400",
                                 status_code=400)
        return formats[mime_type]


@pytest.fixture
def fake_client() -> FakeDriveClient:
    return FakeDriveClient()


@pytest.fixture
def settings(tmp_path) -> SettingsStore:
    store = SettingsStore(tmp_path / "config.yml")
    store.write(BackupConfig(google_drive=GoogleDriveConfig(prefix=str(tmp_path / "drive"))))
    return store
