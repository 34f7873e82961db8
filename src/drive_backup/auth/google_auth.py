"""Google OAuth bearer token handling."""

import logging
import threading
import time
from typing import Dict, Optional

import requests

from ..config.settings import GoogleDriveConfig
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_SCOPES = [
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/drive.metadata.readonly",
]


class GoogleDriveAuth:
    """Supply bearer tokens for the Google Drive API.

    Either a static access token is used as-is, or a refresh token is
    exchanged for short-lived access tokens which are cached until shortly
    before they expire. The consent flow that produces the refresh token is
    outside this tool.
    """

    def __init__(self, client_id: str, client_secret: str,
                 refresh_token: Optional[str] = None,
                 access_token: Optional[str] = None,
                 timeout: int = 30):
        """Initialize Google authentication.

        Args:
            client_id: OAuth client ID
            client_secret: OAuth client secret
            refresh_token: Long-lived refresh token (optional)
            access_token: Static bearer token (optional, never refreshed)
            timeout: Timeout for token endpoint requests in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.timeout = timeout

        self._static_token = access_token
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[float] = None  # Unix timestamp when token expires
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: GoogleDriveConfig, timeout: int = 30) -> "GoogleDriveAuth":
        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            refresh_token=config.refresh_token,
            access_token=config.access_token,
            timeout=timeout,
        )

    def _is_token_expired(self) -> bool:
        """Check if the cached token is missing or expires within 5 minutes."""
        if self._access_token is None or self._token_expiry is None:
            return True
        return time.time() >= (self._token_expiry - 300)

    def _refresh(self) -> str:
        if not self.refresh_token:
            raise AuthenticationError(
                "No access_token or refresh_token configured for Google Drive"
            )

        try:
            response = requests.post(
                TOKEN_URL,
                data={
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'refresh_token': self.refresh_token,
                    'grant_type': 'refresh_token',
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"Token refresh request failed: {e}") from e

        if response.status_code != 200:
            try:
                error = response.json().get('error_description') or response.json().get('error')
            except ValueError:
                error = response.text
            raise AuthenticationError(f"Token refresh failed: HTTP {response.status_code}: {error}")

        result = response.json()
        self._access_token = result['access_token']
        expires_in = result.get('expires_in', 3600)
        self._token_expiry = time.time() + expires_in
        logger.info(f"Obtained new access token (expires in {expires_in} seconds)")
        return self._access_token

    def get_access_token(self, force_refresh: bool = False) -> str:
        """Get current access token, refreshing it if expired."""
        if self._static_token:
            return self._static_token

        with self._lock:
            if force_refresh or self._is_token_expired():
                return self._refresh()
            return self._access_token

    def get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.get_access_token()}"}
