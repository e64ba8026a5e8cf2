"""Shared fixtures and Graph fakes for field report sync tests."""

import json
from unittest.mock import MagicMock
from urllib.parse import unquote

import pytest

from field_report_sync.config import Config
from field_report_sync.exceptions import GraphApiError
from field_report_sync.monitoring import SubmissionStatistics, submission_stats

DRIVE_ID = "drive-1"
WEB_ROOT = "https://contoso.sharepoint.com/sites/fieldwork/Shared%20Documents"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, json_data=None, text=None, headers=None, reason="OK"):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text
        self.content = text.encode()
        self.headers = headers or {}
        self.reason = reason

    def json(self):
        return self._json


class FakeGraphClient:
    """
    In-memory stand-in for GraphClient that records every call.

    GET resources are routed by path (query params are recorded, not matched).
    Drive paths are backed by a set of existing folders and a dict of files.
    """

    def __init__(self, config, drive_id=DRIVE_ID):
        self.config = config
        self.drive_id = drive_id
        self.calls = []
        self.resources = {}
        self.folders = set()
        self.items = {}
        self.created_items = []
        self._pending_upload = None

    @property
    def _root_prefix(self):
        return f"/drives/{self.drive_id}/root:/"

    def _drive_path(self, path, suffix=""):
        rel = path[len(self._root_prefix):]
        if suffix:
            rel = rel[:-len(suffix)]
        return unquote(rel)

    def get(self, path, params=None):
        self.calls.append(('GET', path, params))
        if path in self.resources:
            value = self.resources[path]
            if isinstance(value, Exception):
                raise value
            return value
        if path.startswith(self._root_prefix):
            rel = self._drive_path(path)
            if rel in self.folders:
                return {'name': rel.rsplit('/', 1)[-1], 'folder': {}}
            if rel in self.items:
                return self.items[rel]
        raise GraphApiError(f"GET {path} failed: HTTP 404 Not Found", status_code=404, endpoint=path)

    def post(self, path, body):
        self.calls.append(('POST', path, body))
        if path.endswith('/children'):
            if path == f"/drives/{self.drive_id}/root/children":
                parent = ""
            else:
                parent = self._drive_path(path, ":/children")
            folder = f"{parent}/{body['name']}" if parent else body['name']
            self.folders.add(folder)
            return {'id': f"folder-{len(self.folders)}", 'name': body['name'], 'folder': {}}
        if path.endswith('/items'):
            self.created_items.append(body['fields'])
            return {'id': str(len(self.created_items))}
        raise AssertionError(f"unexpected POST {path}")

    def put_content(self, path, data):
        self.calls.append(('PUT', path, len(data)))
        rel = self._drive_path(path, ":/content")
        name = rel.rsplit('/', 1)[-1]
        item = {'id': f"item-{len(self.items) + 1}", 'name': name, 'webUrl': f"{WEB_ROOT}/{rel}"}
        self.items[rel] = item
        return item

    def create_upload_session(self, path, body):
        self.calls.append(('SESSION', path, body))
        self._pending_upload = self._drive_path(path, ":/createUploadSession")
        return {'uploadUrl': f"https://upload.example/session/{len(self.calls)}"}

    def put_chunk(self, upload_url, chunk_data, start, end, total_size):
        self.calls.append(('CHUNK', upload_url, start, end, total_size, len(chunk_data)))
        if end == total_size:
            rel = self._pending_upload
            self.items[rel] = {
                'id': f"item-{len(self.items) + 1}",
                'name': rel.rsplit('/', 1)[-1],
                'webUrl': f"{WEB_ROOT}/{rel}"
            }
            # Completion response carries no webUrl
            return {'id': self.items[rel]['id']}
        return {'nextExpectedRanges': [f"{end}-"]}

    def calls_of(self, kind):
        return [call for call in self.calls if call[0] == kind]


def column_payload():
    """Columns of a typical field report list, in listing order."""
    return {'value': [
        {'name': 'Title', 'displayName': 'Title', 'text': {}},
        {'name': 'Village', 'displayName': 'Village',
         'choice': {'choices': [' Oak Ridge ', 'Pine Hill', 'Oak Ridge', '']}},
        {'name': 'Notes', 'displayName': 'Notes', 'text': {'allowMultipleLines': True}},
        {'name': 'Captured_x0020_On', 'displayName': 'Captured On', 'dateTime': {}},
        {'name': 'PhotoUrl', 'displayName': 'Photo URL', 'text': {'allowMultipleLines': True}},
        {'name': 'CategoryOptions', 'displayName': 'Category Options', 'readOnly': True,
         'choice': {'choices': ['Roof damage', 'Fence', 'Roof damage']}},
        {'name': 'Modified', 'displayName': 'Modified', 'dateTime': {}, 'readOnly': True},
        {'name': '_HiddenNotes', 'displayName': 'Notes', 'text': {}, 'hidden': True},
    ]}


@pytest.fixture
def config():
    return Config(
        tenant_id="tenant-1",
        client_id="client-1",
        site_hostname="contoso.sharepoint.com",
        site_path="/sites/fieldwork",
        list_name_or_id="Field Reports",
        drive_name_or_id="Documents",
        library_folder_path="Photos",
        time_zone="Pacific/Auckland",
    )


@pytest.fixture
def fake_graph(config):
    return FakeGraphClient(config)


@pytest.fixture
def site_graph(fake_graph):
    """Fake Graph with the site, list, drive and columns of the test tenant."""
    fake_graph.resources.update({
        "/sites/contoso.sharepoint.com:/sites/fieldwork": {'id': 'site-1'},
        "/sites/site-1/lists": {'value': [{'id': 'list-1', 'displayName': 'Field Reports'}]},
        "/sites/site-1/drives": {'value': [
            {'id': DRIVE_ID, 'name': 'Documents', 'driveType': 'documentLibrary'},
        ]},
        "/sites/site-1/lists/list-1/columns": column_payload(),
    })
    return fake_graph


@pytest.fixture
def token_provider():
    provider = MagicMock()
    provider.get_access_token.return_value = "token-123"
    return provider


@pytest.fixture(autouse=True)
def reset_submission_stats():
    submission_stats.stats = SubmissionStatistics().stats
    yield
