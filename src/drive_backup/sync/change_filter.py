"""Selection of files that changed since the last backup."""

from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from ..exceptions import MissingTimestampError
from ..sources.drive_operations import RemoteFile


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_changed(file: RemoteFile, since: datetime) -> bool:
    """Check whether a file was created or modified at or after ``since``.

    Raises:
        MissingTimestampError: If the file has neither timestamp
    """
    if file.created_time is None and file.modified_time is None:
        raise MissingTimestampError(file.id, file.name)

    since = _aware(since)
    return any(
        _aware(stamp) >= since
        for stamp in (file.modified_time, file.created_time)
        if stamp is not None
    )


def select_changed(listing: Iterable[RemoteFile], since: datetime) -> List[Tuple[str, str]]:
    """Return ``(id, name)`` of every file new since the watermark.

    The boundary is inclusive, so a file stamped exactly at ``since`` is
    selected.
    """
    return [(f.id, f.name or f.id) for f in listing if is_changed(f, since)]


def select_all(listing: Iterable[RemoteFile]) -> List[Tuple[str, str]]:
    """Initial-run selection: every file in the listing."""
    return [(f.id, f.name or f.id) for f in listing]
