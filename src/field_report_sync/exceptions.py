# -*- coding: utf-8 -*-
"""
Exception classes for field report sync.

Every failure the submission pipeline can raise derives from ReportSyncError so
callers can catch the whole family with a single except clause. The message of
each error is written to be shown to the operator verbatim.
"""


class ReportSyncError(Exception):
    """Base exception for field report sync operations."""

    pass


class ConfigurationError(ReportSyncError):
    """
    Raised when a required input is missing or unusable.

    Examples: an empty site hostname in the configuration, no photo column on
    the target list, or a captured-on value that is not a date.
    """

    pass


class AuthenticationError(ReportSyncError):
    """Raised when no bearer token could be obtained, silently or interactively."""

    pass


class ResolutionError(ReportSyncError):
    """
    Raised when a site, list or drive cannot be mapped to an identifier.

    Attributes:
        strategy (str): The lookup strategy that was attempted last
        alternatives (list): Names discovered during lookup, for diagnosis
    """

    def __init__(self, message, strategy=None, alternatives=None):
        super().__init__(message)
        self.strategy = strategy
        self.alternatives = list(alternatives or [])


class NetworkError(ReportSyncError):
    """
    Raised for transport-level failures (connection refused, DNS, timeouts).

    Attributes:
        endpoint (str): Graph path or URL that was being called
        hints (list): Operator-actionable troubleshooting hints
        original (Exception): The underlying transport exception
    """

    def __init__(self, message, endpoint=None, hints=None, original=None):
        super().__init__(message)
        self.endpoint = endpoint
        self.hints = list(hints or [])
        self.original = original


class GraphApiError(ReportSyncError):
    """
    Raised when Graph answers a request with a non-success status.

    Attributes:
        status_code (int): HTTP status code
        body (str): Response body, kept for diagnosis
        endpoint (str): Graph path that was called
    """

    def __init__(self, message, status_code=None, body="", endpoint=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint


class RemoteWriteError(GraphApiError):
    """
    Raised when a write call (folder, content, chunk, list item) is rejected.

    Not retried automatically; files already uploaded by the aborted attempt
    stay where they are.
    """

    pass
