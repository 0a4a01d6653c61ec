"""Microsoft Graph authentication handling."""

import logging
import time
from pathlib import Path
from typing import Dict, Optional

import msal

from ..config.settings import CredentialsConfig
from ..exceptions import RemoteApiError

logger = logging.getLogger(__name__)

class MicrosoftGraphAuth:
    """Handle authentication for Microsoft Graph API."""

    def __init__(self, app_id: str, app_secret: Optional[str] = None, tenant_id: Optional[str] = None,
                 token_cache_path: Optional[Path] = None):
        """Initialize Microsoft Graph authentication.

        Args:
            app_id: Azure application ID
            app_secret: Azure application secret (for confidential client)
            tenant_id: Azure tenant ID (optional, defaults to common)
            token_cache_path: Where the MSAL token cache is persisted
        """
        self.app_id = app_id
        self.app_secret = app_secret
        self.tenant_id = tenant_id or "common"
        self.token_cache_path = token_cache_path or Path.home() / ".mirror_backup" / "token_cache.json"
        self.token_cache_path.parent.mkdir(parents=True, exist_ok=True)

        if self.app_secret:
            # For client credential flows, use .default scope
            self.scopes = ["https://graph.microsoft.com/.default"]
        else:
            # Delegated flows need write access to create folders and upload
            self.scopes = [
                "https://graph.microsoft.com/Files.ReadWrite.All",
                "https://graph.microsoft.com/User.Read"
            ]

        self._access_token: Optional[str] = None
        self._token_expiry: Optional[float] = None  # Unix timestamp when token expires
        self._app: Optional[msal.ClientApplication] = None

    def _get_msal_app(self) -> msal.ClientApplication:
        """Get MSAL application instance."""
        if self._app is None:
            cache = msal.SerializableTokenCache()
            if self.token_cache_path.exists():
                with open(self.token_cache_path, 'r') as f:
                    cache.deserialize(f.read())

            authority = f"https://login.microsoftonline.com/{self.tenant_id}"
            if self.app_secret:
                self._app = msal.ConfidentialClientApplication(
                    client_id=self.app_id,
                    client_credential=self.app_secret,
                    authority=authority,
                    token_cache=cache
                )
            else:
                self._app = msal.PublicClientApplication(
                    client_id=self.app_id,
                    authority=authority,
                    token_cache=cache
                )

        return self._app

    def _save_token_cache(self):
        """Save token cache to disk."""
        app = self._get_msal_app()
        if app.token_cache.has_state_changed:
            with open(self.token_cache_path, 'w') as f:
                f.write(app.token_cache.serialize())

    def _store_result(self, result: Dict) -> str:
        """Remember a successful token response and persist the cache."""
        self._access_token = result["access_token"]
        expires_in = result.get("expires_in", 3600)
        self._token_expiry = time.time() + expires_in
        logger.info(f"Obtained access token (expires in {expires_in} seconds)")
        self._save_token_cache()
        return self._access_token

    def authenticate(self) -> str:
        """Authenticate and get access token.

        Tries the token cache first, then the client credentials flow for
        confidential clients or the device code flow for public clients.

        Returns:
            Access token string

        Raises:
            RemoteApiError: If authentication fails
        """
        app = self._get_msal_app()

        accounts = app.get_accounts()
        if accounts:
            result = app.acquire_token_silent(self.scopes, account=accounts[0])
            if result and "access_token" in result:
                return self._store_result(result)

        if self.app_secret:
            result = app.acquire_token_for_client(scopes=self.scopes)
        else:
            flow = app.initiate_device_flow(scopes=self.scopes)
            if "user_code" not in flow:
                raise RemoteApiError(
                    f"Authentication failed: {flow.get('error_description', 'could not start device flow')}"
                )
            print(flow["message"])
            result = app.acquire_token_by_device_flow(flow)

        if "access_token" in result:
            return self._store_result(result)

        error_msg = result.get("error_description", result.get("error", "Unknown authentication error"))
        raise RemoteApiError(f"Authentication failed: {error_msg}")

    def _is_token_expired(self) -> bool:
        """Check if the current access token is expired or about to expire.

        Returns:
            True if token is expired or will expire within 5 minutes
        """
        if self._access_token is None or self._token_expiry is None:
            return True

        buffer_seconds = 300
        return time.time() >= (self._token_expiry - buffer_seconds)

    def get_access_token(self, force_refresh: bool = False) -> str:
        """Get current access token, automatically refreshing if expired.

        Long uploads can outlive a token, so every request asks for the token
        again instead of holding on to one.

        Args:
            force_refresh: Force token refresh even if current token seems valid

        Returns:
            Access token string
        """
        if force_refresh or self._is_token_expired():
            if self._access_token is not None:
                logger.info("Access token expired, refreshing")
            return self.authenticate()

        return self._access_token

    def get_auth_headers(self) -> Dict[str, str]:
        """Get authorization headers for API requests.

        Returns:
            Dictionary with authorization headers
        """
        token = self.get_access_token()
        return {
            "Authorization": f"Bearer {token}",
        }

    @classmethod
    def from_credentials(cls, credentials: CredentialsConfig) -> "MicrosoftGraphAuth":
        """Create authentication instance from loaded credentials.

        Raises:
            ConfigurationError: If the application id is missing
        """
        return cls(
            app_id=credentials.require_app_id(),
            app_secret=credentials.microsoft_app_secret,
            tenant_id=credentials.microsoft_tenant_id,
        )
