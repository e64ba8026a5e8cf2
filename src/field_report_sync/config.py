# -*- coding: utf-8 -*-
"""
Configuration management for field report sync.

The configuration is built once at process start, validated, and then passed
by reference to everything that needs it. Missing required values raise
ConfigurationError; values that merely look unusual produce warnings and the
submission carries on.
"""

import os
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .utils import DEFAULT_TIME_ZONE, to_str

DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com"
DEFAULT_GRAPH_VERSION = "v1.0"
DEFAULT_LOGIN_ENDPOINT = "login.microsoftonline.com"
DEFAULT_REDIRECT_URI = "http://localhost"

SHAREPOINT_HOST_PATTERN = re.compile(r"(sharepoint\.(com|cn|de|mil|us)|sharepoint-df\.com)", re.IGNORECASE)
SITE_PATH_PATTERN = re.compile(r"^/(sites|teams)/", re.IGNORECASE)

# Environment variable -> Config attribute
ENV_VARIABLES = {
    'AZURE_TENANT_ID': 'tenant_id',
    'AZURE_CLIENT_ID': 'client_id',
    'AZURE_CLIENT_SECRET': 'client_secret',
    'REDIRECT_URI': 'redirect_uri',
    'SP_SITE_HOSTNAME': 'site_hostname',
    'SP_SITE_PATH': 'site_path',
    'SP_LIST': 'list_name_or_id',
    'SP_DRIVE': 'drive_name_or_id',
    'SP_FOLDER_PATH': 'library_folder_path',
    'GRAPH_BASE_URL': 'graph_base_url',
    'GRAPH_VERSION': 'graph_version',
    'LOGIN_ENDPOINT': 'login_endpoint',
    'OPERATIONAL_TIME_ZONE': 'time_zone',
}

REQUIRED_SETTINGS = [
    'tenant_id',
    'client_id',
    'site_hostname',
    'site_path',
    'list_name_or_id',
    'drive_name_or_id',
]


class Config:
    """Configuration for field report submissions"""

    def __init__(self, tenant_id="", client_id="", site_hostname="", site_path="",
                 list_name_or_id="", drive_name_or_id="", library_folder_path="",
                 client_secret="", redirect_uri=DEFAULT_REDIRECT_URI,
                 graph_base_url=DEFAULT_GRAPH_BASE_URL, graph_version=DEFAULT_GRAPH_VERSION,
                 login_endpoint=DEFAULT_LOGIN_ENDPOINT, time_zone=DEFAULT_TIME_ZONE):
        """
        Store raw configuration values.

        Every value is treated as an untrusted string; call validate() before use.

        Args:
            tenant_id (str): Entra ID tenant ID
            client_id (str): App registration client ID
            site_hostname (str): SharePoint host, e.g. 'contoso.sharepoint.com'
            site_path (str): Server-relative site path, e.g. '/sites/fieldwork'
            list_name_or_id (str): Target list display name or GUID
            drive_name_or_id (str): Document library name or drive GUID
            library_folder_path (str): Base folder for photos inside the library
            client_secret (str): Optional secret; switches auth to client credentials
            redirect_uri (str): Redirect URI registered for interactive sign-in
            graph_base_url (str): Graph base URL without version
            graph_version (str): Graph API version segment
            login_endpoint (str): Authority host
            time_zone (str): IANA name of the operational time zone
        """
        self.tenant_id = to_str(tenant_id).strip()
        self.client_id = to_str(client_id).strip()
        self.client_secret = to_str(client_secret).strip()
        self.redirect_uri = to_str(redirect_uri).strip()
        self.site_hostname = to_str(site_hostname).strip()
        self.site_path = to_str(site_path).strip()
        self.list_name_or_id = to_str(list_name_or_id).strip()
        self.drive_name_or_id = to_str(drive_name_or_id).strip()
        self.library_folder_path = to_str(library_folder_path).strip()
        self.graph_base_url = to_str(graph_base_url).strip()
        self.graph_version = to_str(graph_version).strip()
        self.login_endpoint = to_str(login_endpoint).strip() or DEFAULT_LOGIN_ENDPOINT
        self.time_zone = to_str(time_zone).strip() or DEFAULT_TIME_ZONE

    @classmethod
    def from_env(cls, environ=None):
        """
        Build a Config from environment variables.

        Args:
            environ (dict): Mapping to read from (defaults to os.environ)

        Returns:
            Config: Unvalidated configuration
        """
        environ = os.environ if environ is None else environ
        values = {}
        for variable, attribute in ENV_VARIABLES.items():
            if environ.get(variable) is not None:
                values[attribute] = environ[variable]
        return cls(**values)

    @property
    def graph_api_url(self):
        """Graph base URL joined with the version segment."""
        base = (self.graph_base_url or DEFAULT_GRAPH_BASE_URL).rstrip('/')
        version = (self.graph_version or DEFAULT_GRAPH_VERSION).strip('/')
        return f"{base}/{version}"

    @property
    def graph_host(self):
        """Host part of the Graph base URL, used for the '.default' scope."""
        base = self.graph_base_url or DEFAULT_GRAPH_BASE_URL
        return re.sub(r"^https?://", "", base).rstrip('/')

    @property
    def uses_client_credentials(self):
        return bool(self.client_secret)

    def missing_settings(self):
        """Names of required settings that are empty."""
        return [name for name in REQUIRED_SETTINGS if not getattr(self, name)]

    def shape_warnings(self):
        """
        Check values that are usable but look unusual.

        Returns:
            list: Human-readable warning strings (empty when all looks normal)
        """
        warnings = []
        if not SHAREPOINT_HOST_PATTERN.search(self.site_hostname):
            warnings.append(f"site hostname '{self.site_hostname}' does not look like a SharePoint Online host.")
        if not SITE_PATH_PATTERN.match(self.site_path):
            warnings.append(f"site path '{self.site_path}' should start with '/sites/' or '/teams/'.")
        if not self.library_folder_path:
            warnings.append("library folder path is empty - images will be stored at the library root/YYYY/MM.")
        if not self.graph_base_url:
            warnings.append(f"graph base URL is empty - defaulting to {DEFAULT_GRAPH_BASE_URL}")
        if not self.graph_version:
            warnings.append(f"graph version is empty - defaulting to {DEFAULT_GRAPH_VERSION}")
        if not self.uses_client_credentials and not self.redirect_uri:
            warnings.append("redirect URI is empty - add your redirect URI in the Entra app registration.")
        return warnings

    def validate(self):
        """
        Validate configuration values.

        Returns:
            list: Non-fatal warnings (see shape_warnings)

        Raises:
            ConfigurationError: If a required value is missing or the time zone is unknown
        """
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

        try:
            ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Unknown operational time zone '{self.time_zone}'")

        return self.shape_warnings()


def parse_config(env_file=None):
    """
    Load configuration from the environment (and a .env file if present).

    Args:
        env_file (str): Optional path to a dotenv file

    Returns:
        Config: Validated Config object

    Raises:
        ConfigurationError: If configuration is invalid
    """
    load_dotenv(env_file)
    config = Config.from_env()
    for warning in config.validate():
        print(f"[!] Config: {warning}")
    return config
