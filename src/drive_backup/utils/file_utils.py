"""File utility functions."""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

RUN_TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


class FileHelper:
    """Helper class for file operations."""

    @staticmethod
    def format_file_size(size_bytes: float) -> str:
        """Format file size in human readable format.

        Args:
            size_bytes: Size in bytes

        Returns:
            Formatted size string
        """
        if size_bytes == 0:
            return "0 B"

        size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
        i = 0

        while size_bytes >= 1024 and i < len(size_names) - 1:
            size_bytes /= 1024.0
            i += 1

        return f"{size_bytes:.1f} {size_names[i]}"

    @staticmethod
    def sanitize_filename(filename: str, replacement: str = "_") -> str:
        """Sanitize a remote object name for use as a local path segment.

        Args:
            filename: Original filename
            replacement: Character to replace invalid characters

        Returns:
            Sanitized filename
        """
        # Characters not allowed in filenames on various systems
        invalid_chars = '<>:"/\\|?*'

        sanitized = filename
        for char in invalid_chars:
            sanitized = sanitized.replace(char, replacement)

        # Remove control characters
        sanitized = ''.join(char for char in sanitized if ord(char) >= 32)

        # Leading dots are kept so dotfiles survive; trailing ones are not portable
        sanitized = sanitized.strip(' ').rstrip('.')

        if not sanitized or sanitized in ('.', '..'):
            sanitized = "unnamed_file"

        if len(sanitized) > 255:
            name, ext = os.path.splitext(sanitized)
            max_name_len = 255 - len(ext)
            sanitized = name[:max_name_len] + ext

        return sanitized

    @staticmethod
    def write_atomic(target: Path, content: bytes) -> None:
        """Write ``content`` to ``target`` without ever exposing a partial file.

        The data goes to a hidden temporary sibling which is renamed over the
        target once fully written.
        """
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name[:200]}.", suffix=".part",
                                        dir=target.parent)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def run_directory_name(moment: Optional[datetime] = None) -> str:
        """Name of the per-run subdirectory for an incremental pass."""
        moment = moment or datetime.now(timezone.utc)
        return moment.astimezone(timezone.utc).strftime(RUN_TIMESTAMP_FORMAT)
