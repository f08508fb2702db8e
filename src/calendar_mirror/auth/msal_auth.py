"""MSAL-based authentication for the Microsoft 365 calendar store."""

import logging
from typing import Optional

import msal

from ..config import M365Config
from ..utils.exceptions import AuthenticationError
from .token_cache import TokenCacheManager

logger = logging.getLogger(__name__)

# Microsoft Graph PowerShell public client, usable without an app registration
DEFAULT_CLIENT_ID = "14d82eec-204b-4c2f-b7e8-296a70dab67e"


class M365AuthProvider:
    """
    Acquire Graph access tokens with MSAL.

    Uses the client credentials flow when a client secret is configured and
    the device code flow otherwise. Scheduled runs cannot answer a device
    code prompt, so a provider built with ``interactive=False`` raises
    ``AuthenticationError`` instead of prompting when no cached token exists.
    """

    def __init__(
        self,
        config: M365Config,
        cache_manager: TokenCacheManager,
        interactive: bool = True,
    ):
        client_id = config.client_id or DEFAULT_CLIENT_ID
        tenant_id = config.tenant_id or "common"
        authority = config.authority or f"https://login.microsoftonline.com/{tenant_id}"

        self.config = config
        self.cache_manager = cache_manager
        self.interactive = interactive
        self.use_client_credentials = bool(config.client_id and config.client_secret)

        if self.use_client_credentials:
            logger.info("Initializing M365 auth with client credentials flow (app-only)")
            self.scopes = ["https://graph.microsoft.com/.default"]
            self.app = msal.ConfidentialClientApplication(
                client_id=client_id,
                client_credential=config.client_secret,
                authority=authority,
                token_cache=cache_manager.get_cache(),
            )
        else:
            logger.info("Initializing M365 auth with device code flow")
            self.scopes = [
                f"https://graph.microsoft.com/{scope}" for scope in config.scopes
            ]
            self.app = msal.PublicClientApplication(
                client_id=client_id,
                authority=authority,
                token_cache=cache_manager.get_cache(),
            )

    def acquire_token_silent(self) -> Optional[str]:
        """Return a cached delegated token, or None if the user must sign in."""
        accounts = self.app.get_accounts()
        if not accounts:
            return None
        result = self.app.acquire_token_silent(scopes=self.scopes, account=accounts[0])
        if result and "access_token" in result:
            logger.debug("Token acquired from cache (delegated)")
            return result["access_token"]
        return None

    def _acquire_token_client_credentials(self) -> str:
        # MSAL caches app-only tokens itself
        result = self.app.acquire_token_for_client(scopes=self.scopes)
        if "access_token" in result:
            logger.debug("Token acquired via client credentials flow")
            return result["access_token"]
        raise AuthenticationError(
            f"Client credentials authentication failed: "
            f"{result.get('error_description', 'Unknown error')}"
        )

    def _acquire_token_device_code(self) -> str:
        flow = self.app.initiate_device_flow(scopes=self.scopes)
        if "user_code" not in flow:
            raise AuthenticationError(
                f"Failed to create device flow: {flow.get('error_description', 'Unknown error')}"
            )

        print("\n" + "=" * 70)
        print("AUTHENTICATION REQUIRED")
        print("=" * 70)
        print(f"\n{flow['message']}\n")
        print("=" * 70 + "\n")

        result = self.app.acquire_token_by_device_flow(flow)
        if "access_token" in result:
            logger.info("Token acquired via device code flow")
            return result["access_token"]
        raise AuthenticationError(
            f"Device code authentication failed: "
            f"{result.get('error_description', 'Unknown error')}"
        )

    def get_access_token(self) -> str:
        """
        Get a valid access token.

        Raises:
            AuthenticationError: If no token can be acquired
        """
        if self.use_client_credentials:
            return self._acquire_token_client_credentials()

        token = self.acquire_token_silent()
        if token:
            return token
        if not self.interactive:
            raise AuthenticationError(
                "No cached M365 token; run 'calendar-mirror --test-config' once to sign in"
            )
        return self._acquire_token_device_code()

    def clear_cache(self) -> None:
        """Forget signed-in accounts and drop the persisted cache."""
        for account in self.app.get_accounts():
            self.app.remove_account(account)
        self.cache_manager.clear_cache()
