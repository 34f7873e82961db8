"""Reconstruction of a file's folder path from its parent chain."""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from ..exceptions import CyclicParentError, PathResolutionError, TransportError
from ..sources.drive_operations import GoogleDriveClient, RemoteFile

logger = logging.getLogger(__name__)


class PathResolver:
    """Walk parent references to build root-first folder paths.

    Metadata fetched during a pass is cached, so files sharing ancestors
    share the round trips. A resolver is meant to live for a single pass.
    """

    def __init__(self, client: GoogleDriveClient, known: Optional[Iterable[RemoteFile]] = None):
        """Initialize path resolver.

        Args:
            client: Drive client used for metadata lookups
            known: Objects already fetched this pass (e.g. the listing)
        """
        self.client = client
        self._cache: Dict[str, RemoteFile] = {f.id: f for f in known or ()}

    async def _metadata(self, file_id: str) -> RemoteFile:
        cached = self._cache.get(file_id)
        if cached is not None:
            return cached
        metadata = await asyncio.to_thread(self.client.get_file_metadata, file_id)
        self._cache[file_id] = metadata
        return metadata

    async def resolve_path(self, file_id: str) -> List[str]:
        """Return the names of the folders containing ``file_id``, root first.

        A missing name falls back to the object's identifier. If an ancestor
        cannot be fetched, its identifier becomes the topmost segment.

        Raises:
            CyclicParentError: If the parent chain loops
        """
        names: List[str] = []
        visited = set()
        current: Optional[str] = file_id

        while current is not None:
            if current in visited:
                raise CyclicParentError(file_id, current)
            visited.add(current)

            try:
                metadata = await self._metadata(current)
            except TransportError as e:
                error = PathResolutionError(file_id, f"Could not fetch {current} while resolving {file_id}: {e}")
                logger.warning(f"{error}, using the identifier as path segment")
                names.append(current)
                break

            names.append(metadata.name or current)
            current = metadata.parent_id

        # The first name is the file itself
        names.pop(0)
        names.reverse()
        return names
