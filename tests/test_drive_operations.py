"""Tests for the Drive REST client and token handling."""

from datetime import datetime, timezone

import pytest
import requests

from drive_backup.auth.google_auth import GoogleDriveAuth
from drive_backup.exceptions import AuthenticationError, TransportError
from drive_backup.sources.drive_operations import GoogleDriveClient, RemoteFile, parse_timestamp


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append((url, dict(params or {}), headers))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(responses):
    session = FakeSession(responses)
    auth = GoogleDriveAuth("id", "secret", access_token="token")
    return GoogleDriveClient(auth, session=session), session


def test_remote_file_from_api():
    file = RemoteFile.from_api({
        'id': 'f1',
        'name': 'notes.txt',
        'parents': ['p1'],
        'createdTime': '2024-01-01T10:00:00.000Z',
        'modifiedTime': '2024-01-02T10:00:00.000Z',
        'mimeType': 'text/plain',
    })

    assert file.parent_id == 'p1'
    assert file.created_time == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert file.modified_time == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert not file.is_folder


def test_remote_file_without_parents_or_times():
    file = RemoteFile.from_api({'id': 'root', 'mimeType': 'application/vnd.google-apps.folder'})

    assert file.parent_id is None
    assert file.name is None
    assert file.created_time is None
    assert file.is_folder


def test_parse_timestamp_handles_garbage():
    assert parse_timestamp(None) is None
    assert parse_timestamp("yesterday-ish") is None
    assert parse_timestamp("2024-01-01T00:00:00").tzinfo is not None


def test_list_files_follows_pagination():
    client, session = _client([
        FakeResponse(payload={'files': [{'id': 'a', 'name': 'A'}], 'nextPageToken': 'next'}),
        FakeResponse(payload={'files': [{'id': 'b', 'name': 'B'}]}),
    ])

    files = client.list_files()

    assert [f.id for f in files] == ['a', 'b']
    assert 'pageToken' not in session.calls[0][1]
    assert session.calls[1][1]['pageToken'] == 'next'
    assert session.calls[0][2] == {'Authorization': 'Bearer token'}


def test_content_and_export_requests():
    client, session = _client([
        FakeResponse(content=b"raw"),
        FakeResponse(content=b"%PDF"),
    ])

    assert client.get_file_content('f1') == b"raw"
    assert client.export_file('f1', 'application/pdf') == b"%PDF"
    assert session.calls[0][0].endswith('/files/f1')
    assert session.calls[0][1] == {'alt': 'media'}
    assert session.calls[1][0].endswith('/files/f1/export')
    assert session.calls[1][1] == {'mimeType': 'application/pdf'}


def test_http_error_becomes_transport_error():
    client, _ = _client([
        FakeResponse(403, payload={'error': {'message': 'Only files with binary content can be downloaded'}}),
    ])

    with pytest.raises(TransportError) as excinfo:
        client.get_file_content('doc')
    assert excinfo.value.status_code == 403
    assert 'binary content' in str(excinfo.value)


def test_connection_error_becomes_transport_error():
    client, _ = _client([requests.ConnectionError("boom")])

    with pytest.raises(TransportError):
        client.get_file_metadata('f1')


def test_test_connection_reports_failure():
    client, _ = _client([FakeResponse(401, payload={'error': {'message': 'Invalid Credentials'}})])

    assert client.test_connection() is False


def test_auth_without_any_token_fails():
    auth = GoogleDriveAuth("id", "secret")

    with pytest.raises(AuthenticationError):
        auth.get_access_token()


def test_refresh_token_grant(monkeypatch):
    posted = []

    def fake_post(url, data=None, timeout=None):
        posted.append(data)
        return FakeResponse(payload={'access_token': 'fresh', 'expires_in': 3600})

    monkeypatch.setattr(requests, 'post', fake_post)
    auth = GoogleDriveAuth("id", "secret", refresh_token="refresh")

    assert auth.get_access_token() == 'fresh'
    assert auth.get_access_token() == 'fresh'
    assert len(posted) == 1
    assert posted[0]['grant_type'] == 'refresh_token'
