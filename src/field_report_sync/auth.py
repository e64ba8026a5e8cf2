# -*- coding: utf-8 -*-
"""
Microsoft authentication module for field report sync.

This module wraps MSAL (Microsoft Authentication Library) behind a single
capability: "give me a bearer token for these scopes". The rest of the package
never looks inside the token or the flow that produced it.
"""

from urllib.parse import urlparse

import msal

from .exceptions import AuthenticationError
from .utils import is_debug_enabled

# Delegated scopes needed to upload photos and write list items.
# MSAL adds offline_access/openid/profile itself and rejects them if passed.
GRAPH_SCOPES = [
    "User.Read",
    "Sites.ReadWrite.All",
    "Files.ReadWrite.All",
]


class TokenProvider:
    """
    Obtain Graph access tokens for the configured app registration.

    Two modes, chosen by the configuration:
      - client secret present: confidential client, client credentials flow
        (service-to-service, no user interaction)
      - no secret: public client, silent acquisition from the MSAL cache with
        exactly one interactive fallback per call
    """

    def __init__(self, config, app=None):
        """
        Args:
            config (Config): Validated configuration
            app: Optional pre-built MSAL application (used by tests)
        """
        self.config = config
        self.account = None

        # Format: https://login.microsoftonline.com/{tenant_id}
        authority_url = f"https://{config.login_endpoint}/{config.tenant_id}"

        if app is not None:
            self.app = app
        elif config.uses_client_credentials:
            self.app = msal.ConfidentialClientApplication(
                client_id=config.client_id,
                authority=authority_url,
                client_credential=config.client_secret
            )
        else:
            self.app = msal.PublicClientApplication(
                client_id=config.client_id,
                authority=authority_url
            )

    def _interactive_options(self):
        """
        Extra arguments for acquire_token_interactive().

        MSAL listens on http://localhost:<port> for the redirect; an explicit
        port in the configured redirect URI is passed through so it matches
        the app registration. Without one MSAL picks a free port.
        """
        port = urlparse(self.config.redirect_uri).port if self.config.redirect_uri else None
        return {'port': port} if port else {}

    def _current_account(self):
        if self.account:
            return self.account
        accounts = self.app.get_accounts()
        return accounts[0] if accounts else None

    def get_access_token(self, scopes=None):
        """
        Acquire an access token, silently if possible.

        Args:
            scopes (list): Delegated scopes (ignored for client credentials,
                which always request '<graph>/.default')

        Returns:
            str: Bearer token

        Raises:
            AuthenticationError: If both the silent and interactive attempts fail
        """
        if self.config.uses_client_credentials:
            # '/.default' scope means "use all permissions granted to this app"
            result = self.app.acquire_token_for_client(
                scopes=[f"https://{self.config.graph_host}/.default"]
            )
            return self._extract_token(result)

        scopes = scopes or GRAPH_SCOPES
        account = self._current_account()
        result = None
        if account:
            result = self.app.acquire_token_silent(scopes, account=account)

        if not result or 'access_token' not in result:
            if is_debug_enabled():
                print("[DEBUG] Silent token acquisition unavailable, falling back to interactive sign-in")
            if account:
                result = self.app.acquire_token_interactive(
                    scopes, login_hint=account.get('username'), **self._interactive_options()
                )
            else:
                result = self.app.acquire_token_interactive(
                    scopes, prompt="select_account", **self._interactive_options()
                )
            self._remember_account()

        return self._extract_token(result)

    def sign_in(self, scopes=None):
        """
        Run an interactive sign-in and remember the chosen account.

        Returns:
            str: Username of the signed-in account, if MSAL reports one
        """
        if self.config.uses_client_credentials:
            self.get_access_token()
            return self.config.client_id

        result = self.app.acquire_token_interactive(
            scopes or GRAPH_SCOPES, prompt="select_account", **self._interactive_options()
        )
        self._extract_token(result)
        self._remember_account()
        return self.account.get('username') if self.account else None

    def sign_out(self):
        """Forget every cached account."""
        if not self.config.uses_client_credentials:
            for account in self.app.get_accounts():
                self.app.remove_account(account)
        self.account = None

    def _remember_account(self):
        accounts = self.app.get_accounts()
        if accounts:
            self.account = accounts[0]

    @staticmethod
    def _extract_token(result):
        if result and 'access_token' in result:
            return result['access_token']
        result = result or {}
        description = result.get('error_description') or result.get('error') or "no token returned"
        raise AuthenticationError(f"Failed to acquire access token: {description}")
