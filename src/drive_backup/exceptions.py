"""Exceptions raised by the Drive backup engine."""

from typing import Optional


class DriveBackupError(Exception):
    """Base exception for Drive backup errors."""
    pass


class ConfigurationError(DriveBackupError):
    """Raised when the settings file is missing or invalid."""
    pass


class AuthenticationError(DriveBackupError):
    """Raised when a bearer token cannot be obtained."""
    pass


class TransportError(DriveBackupError):
    """Raised when a call to the remote storage API fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class MissingTimestampError(DriveBackupError):
    """Raised when a listed file carries neither a created nor a modified time."""

    def __init__(self, file_id: str, name: Optional[str] = None):
        self.file_id = file_id
        self.name = name
        super().__init__(
            f"File {name or '<unnamed>'} ({file_id}) has neither createdTime nor modifiedTime"
        )


class UninitializedWatermarkError(DriveBackupError):
    """Raised when an incremental pass is requested before the initial backup."""

    def __init__(self):
        super().__init__("The system has not been initialized: no initial backup has completed")


class PathResolutionError(DriveBackupError):
    """Raised when a file's parent chain cannot be walked."""

    def __init__(self, file_id: str, message: Optional[str] = None):
        self.file_id = file_id
        super().__init__(message or f"Could not resolve path for {file_id}")


class CyclicParentError(PathResolutionError):
    """Raised when a parent chain loops back on itself."""

    def __init__(self, file_id: str, repeated_id: str):
        self.repeated_id = repeated_id
        super().__init__(
            file_id,
            f"Parent chain of {file_id} revisits {repeated_id}",
        )
