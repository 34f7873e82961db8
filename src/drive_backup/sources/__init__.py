"""Remote storage sources."""

from .drive_operations import GoogleDriveClient, RemoteFile

__all__ = ["GoogleDriveClient", "RemoteFile"]
