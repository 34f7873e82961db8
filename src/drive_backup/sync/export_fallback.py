"""Export of native documents that have no raw downloadable content."""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..exceptions import TransportError
from ..sources.drive_operations import GoogleDriveClient

logger = logging.getLogger(__name__)

# Richer, lossless formats first
EXPORT_FORMATS: List[Tuple[str, str]] = [
    ("application/rtf", "rtf"),
    ("application/vnd.oasis.opendocument.text", "odt"),
    ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "docx"),
    ("application/pdf", "pdf"),
    ("application/epub+zip", "epub"),
    ("application/zip", "zip"),
    ("text/html", "html"),
    ("text/plain", "txt"),
]


class ExportFallback:
    """Try every export format at once and keep the best one that worked."""

    def __init__(self, client: GoogleDriveClient,
                 formats: Sequence[Tuple[str, str]] = tuple(EXPORT_FORMATS)):
        self.client = client
        self.formats = list(formats)

    async def try_export(self, file_id: str) -> Optional[Tuple[bytes, str]]:
        """Export ``file_id`` in the first format of the list that succeeds.

        All candidates run concurrently; the winner is chosen by list order,
        not by completion time.

        Returns:
            ``(content, extension)`` or None if no format could be exported
        """
        results = await asyncio.gather(
            *(asyncio.to_thread(self.client.export_file, file_id, mime_type)
              for mime_type, _ in self.formats),
            return_exceptions=True,
        )

        chosen: Optional[Tuple[bytes, str]] = None
        for (mime_type, extension), result in zip(self.formats, results):
            if isinstance(result, TransportError):
                logger.debug(f"Export of {file_id} as {mime_type} failed: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            if chosen is None:
                chosen = (result, extension)

        if chosen is None:
            logger.warning(f"No export format available for {file_id}")
        else:
            logger.debug(f"Exported {file_id} as .{chosen[1]}")
        return chosen
