"""Google Drive operations for listing and retrieving files."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from dateutil import parser as date_parser

from ..auth.google_auth import GoogleDriveAuth
from ..exceptions import AuthenticationError, TransportError

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id,name,parents,createdTime,modifiedTime,mimeType"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp, treating naive values as UTC.

    Returns None for missing or unparsable values.
    """
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.warning(f"Unparsable timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class RemoteFile:
    """Snapshot of a Drive object as returned by a listing or metadata call."""
    id: str
    name: Optional[str]
    parent_id: Optional[str] = None
    created_time: Optional[datetime] = None
    modified_time: Optional[datetime] = None
    mime_type: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "RemoteFile":
        parents = item.get('parents') or []
        return cls(
            id=item['id'],
            name=item.get('name'),
            parent_id=parents[0] if parents else None,
            created_time=parse_timestamp(item.get('createdTime')),
            modified_time=parse_timestamp(item.get('modifiedTime')),
            mime_type=item.get('mimeType'),
        )


class GoogleDriveClient:
    """Blocking Drive v3 REST client.

    Every call raises TransportError when the request cannot be completed
    or the API answers with a non-200 status.
    """

    def __init__(self, auth: GoogleDriveAuth, timeout: int = 60, page_size: int = 1000,
                 session: Optional[requests.Session] = None):
        self.auth = auth
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            headers = self.auth.get_auth_headers()
        except AuthenticationError as e:
            raise TransportError(f"Authentication failed: {e}") from e

        url = f"{DRIVE_API_URL}/{path}"
        try:
            response = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"GET {path} failed: {e}") from e

        if response.status_code != 200:
            raise TransportError(
                f"GET {path} failed: HTTP {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def list_files(self) -> List[RemoteFile]:
        """List every non-trashed object in the drive, following pagination."""
        files: List[RemoteFile] = []
        page_token: Optional[str] = None

        while True:
            params = {
                'pageSize': self.page_size,
                'fields': f"nextPageToken,files({FILE_FIELDS})",
                'q': "trashed = false",
            }
            if page_token:
                params['pageToken'] = page_token

            data = self._get("files", params).json()
            files.extend(RemoteFile.from_api(item) for item in data.get('files', []))

            page_token = data.get('nextPageToken')
            if not page_token:
                break

        logger.debug(f"Listed {len(files)} objects from Google Drive")
        return files

    def get_file_metadata(self, file_id: str) -> RemoteFile:
        data = self._get(f"files/{file_id}", {'fields': FILE_FIELDS}).json()
        return RemoteFile.from_api(data)

    def get_file_content(self, file_id: str) -> bytes:
        """Download the raw bytes of a file.

        Native editor documents have no raw representation and fail here.
        """
        return self._get(f"files/{file_id}", {'alt': 'media'}).content

    def export_file(self, file_id: str, mime_type: str) -> bytes:
        return self._get(f"files/{file_id}/export", {'mimeType': mime_type}).content

    def test_connection(self) -> bool:
        """Check that the credentials can list at least one page of files."""
        try:
            self._get("files", {'pageSize': 1, 'fields': "files(id)"})
            return True
        except TransportError as e:
            logger.error(f"Connection test failed: {e}")
            return False


def _error_message(response: requests.Response) -> str:
    try:
        error = response.json().get('error', {})
    except ValueError:
        return response.text[:200]
    if isinstance(error, dict):
        return error.get('message', str(error))
    return str(error)
