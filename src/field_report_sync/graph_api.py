# -*- coding: utf-8 -*-
"""
Microsoft Graph API transport for field report sync.

This module provides the thin request layer every other module goes through:
path-addressed GET/POST/PUT calls authenticated with the session's token
provider, status checking, rate-limit header monitoring, and the rewrapping of
transport failures into NetworkError with hints an operator can act on.

Requests are not retried. A failed chunk or a failed list item creation
surfaces immediately and the user resubmits.
"""

import requests

from .exceptions import GraphApiError, NetworkError, RemoteWriteError
from .monitoring import rate_monitor
from .utils import is_debug_enabled, to_str

# Statuses accepted from an upload session chunk PUT
# 202 = chunk accepted, more expected; 200/201 = upload complete
CHUNK_SUCCESS_STATUSES = (200, 201, 202)

# Transport failures that get rewrapped; HTTP error statuses are not in here
NETWORK_EXCEPTIONS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


def rewrap_network_error(error, endpoint, config):
    """
    Turn a transport exception into a NetworkError with troubleshooting hints.

    Args:
        error (Exception): The original requests exception
        endpoint (str): Graph path or URL being called
        config (Config): Configuration, used to echo the configured site

    Returns:
        NetworkError: Error ready to be raised
    """
    hints = [
        f"Endpoint: {endpoint}",
        f"Check the site hostname ('{config.site_hostname}') and site path ('{config.site_path}')",
        f"Ensure proxies/firewalls allow calls to {config.graph_host} and *.sharepoint.com",
    ]
    if not config.uses_client_credentials:
        hints.append(
            f"Confirm the app registration redirect URI matches the one in use: {config.redirect_uri}"
        )
    message = f"Network issue when calling Graph. Original: {error}\n• " + "\n• ".join(hints)
    return NetworkError(message, endpoint=endpoint, hints=hints, original=error)


def describe_failure(response):
    """Short 'HTTP <status> <reason> <body>' text for error messages."""
    return f"HTTP {response.status_code} {to_str(response.reason)} {to_str(response.text)}".strip()


class GraphClient:
    """
    Authenticated, path-addressed access to Microsoft Graph.

    Paths are relative to the configured Graph base URL and version, e.g.
    '/sites/{site-id}/lists'. Absolute URLs are passed through untouched.
    """

    def __init__(self, config, token_provider, http=None, monitor=None, timeout=300):
        """
        Args:
            config (Config): Validated configuration
            token_provider (TokenProvider): Source of bearer tokens
            http (requests.Session): Optional session (tests inject a mock)
            monitor (RateLimitMonitor): Defaults to the module-wide monitor
            timeout (int): Per-request timeout in seconds
        """
        self.config = config
        self.token_provider = token_provider
        self.http = http or requests.Session()
        self.monitor = monitor or rate_monitor
        self.timeout = timeout

    def url_for(self, path):
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.config.graph_api_url}/{path.lstrip('/')}"

    def _headers(self, content_type='application/json'):
        token = self.token_provider.get_access_token()
        return {
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json',
            'Content-Type': content_type
        }

    def _send(self, method, path, headers, **kwargs):
        url = self.url_for(path)
        if is_debug_enabled():
            print(f"[DEBUG] {method} {url}")
        try:
            response = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except NETWORK_EXCEPTIONS as e:
            raise rewrap_network_error(e, path, self.config) from e
        self.monitor.analyze_response_headers(response)
        return response

    @staticmethod
    def _json(response):
        return response.json() if response.content else {}

    def get(self, path, params=None):
        """
        GET a JSON resource.

        Raises:
            GraphApiError: On any non-200 status
            NetworkError: On transport failure
        """
        response = self._send('GET', path, self._headers(), params=params)
        if response.status_code != 200:
            raise GraphApiError(
                f"GET {path} failed: {describe_failure(response)}",
                status_code=response.status_code, body=response.text, endpoint=path
            )
        return self._json(response)

    def post(self, path, body):
        """
        POST a JSON body (folder creation, list item creation, upload session).

        Raises:
            RemoteWriteError: On any status other than 200/201
            NetworkError: On transport failure
        """
        response = self._send('POST', path, self._headers(), json=body)
        if response.status_code not in (200, 201):
            raise RemoteWriteError(
                f"POST {path} failed: {describe_failure(response)}",
                status_code=response.status_code, body=response.text, endpoint=path
            )
        return self._json(response)

    def put_content(self, path, data):
        """
        Write raw file content in a single request.

        Raises:
            RemoteWriteError: On any status other than 200/201
            NetworkError: On transport failure
        """
        response = self._send('PUT', path, self._headers('application/octet-stream'), data=data)
        if response.status_code not in (200, 201):
            raise RemoteWriteError(
                f"PUT {path} failed: {describe_failure(response)}",
                status_code=response.status_code, body=response.text, endpoint=path
            )
        return self._json(response)

    def create_upload_session(self, path, body):
        """Open a resumable upload session; returns the session (with uploadUrl)."""
        return self.post(path, body)

    def put_chunk(self, upload_url, chunk_data, start, end, total_size):
        """
        Upload one byte range to an upload session.

        The session URL is pre-authenticated, so no Authorization header is sent.

        Args:
            upload_url (str): uploadUrl returned by create_upload_session()
            chunk_data (bytes): Chunk content
            start (int): First byte offset (inclusive)
            end (int): Last byte offset (exclusive)
            total_size (int): Total file size in bytes

        Returns:
            dict: Session status, or the drive item once the last chunk lands

        Raises:
            RemoteWriteError: On any status other than 200/201/202
            NetworkError: On transport failure
        """
        headers = {
            'Content-Length': str(len(chunk_data)),
            'Content-Range': f"bytes {start}-{end - 1}/{total_size}"
        }
        if is_debug_enabled():
            print(f"[DEBUG] Uploading chunk: {headers['Content-Range']}")

        try:
            response = self.http.request('PUT', upload_url, headers=headers, data=chunk_data, timeout=self.timeout)
        except NETWORK_EXCEPTIONS as e:
            raise rewrap_network_error(e, "UploadSession PUT chunk", self.config) from e

        if response.status_code not in CHUNK_SUCCESS_STATUSES:
            raise RemoteWriteError(
                f"Upload chunk failed: {describe_failure(response)}",
                status_code=response.status_code, body=response.text, endpoint="UploadSession PUT chunk"
            )
        return self._json(response)
