"""
Dataverse Authentication Manager

Azure AD client-credentials implementation of IAuthProvider for the Dataverse Web API.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import structlog
from azure.core.credentials import TokenCredential
from azure.identity import ClientSecretCredential

from ..config import Settings
from ..models import Credential, DEFAULT_TOKEN_LIFETIME_SECONDS, TOKEN_REFRESH_BUFFER_MS
from .interface import IAuthProvider, AuthenticationError

logger = structlog.get_logger(__name__)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class DataverseAuthManager(IAuthProvider):
    """
    Manages the Azure AD bearer credential for a single Dataverse environment.

    Holds one cached credential. Concurrent callers that miss the cache at the
    same time each perform an exchange and the last one to finish wins; both
    credentials are valid so no lock is taken.
    """

    def __init__(
        self,
        settings: Settings,
        credential: Optional[TokenCredential] = None,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        self.settings = settings
        self.scope = settings.token_scope
        self._clock = clock
        self._cached: Optional[Credential] = None

        # Use client secret credential for service principal authentication
        self.credential = credential or ClientSecretCredential(
            tenant_id=settings.dataverse_tenant_id,
            client_id=settings.dataverse_client_id,
            client_secret=settings.dataverse_client_secret,
        )

        logger.info(
            "Dataverse Auth Manager initialized",
            tenant_id=settings.dataverse_tenant_id,
            client_id=settings.dataverse_client_id,
            environment_url=settings.dataverse_environment_url,
        )

    async def get_credential(self) -> Credential:
        """
        Get a Dataverse bearer credential using the client credentials flow

        Returns:
            Credential valid for at least the next five minutes
        """
        cached = self._cached
        if cached is not None and cached.is_valid(self._clock()):
            logger.debug("Using cached Dataverse token", expires_at_ms=cached.expires_at_ms)
            return cached

        try:
            logger.debug("Requesting new Dataverse token", scope=self.scope)
            access_token = await asyncio.to_thread(self.credential.get_token, self.scope)
        except Exception as e:
            logger.error(
                "Failed to acquire Dataverse token",
                error=str(e),
                tenant_id=self.settings.dataverse_tenant_id,
                client_id=self.settings.dataverse_client_id,
            )
            raise AuthenticationError(f"Authentication failed: {e}") from e

        token = getattr(access_token, "token", None)
        if not token:
            logger.error("Identity provider returned no access token", scope=self.scope)
            raise AuthenticationError(
                "Authentication failed: identity provider returned no access token"
            )

        expires_on = getattr(access_token, "expires_on", None)
        if expires_on:
            expires_at_ms = int(expires_on) * 1000
        else:
            logger.warning(
                "Token expiry missing, assuming default lifetime",
                lifetime_seconds=DEFAULT_TOKEN_LIFETIME_SECONDS,
            )
            expires_at_ms = self._clock() + DEFAULT_TOKEN_LIFETIME_SECONDS * 1000

        credential = Credential(token=token, expires_at_ms=expires_at_ms)
        self._cached = credential

        logger.info(
            "Dataverse token acquired successfully",
            expires_at_ms=expires_at_ms,
            refresh_after_ms=expires_at_ms - TOKEN_REFRESH_BUFFER_MS,
        )
        return credential

    def invalidate(self) -> None:
        """Clear the token cache (useful for testing or forced refresh)"""
        self._cached = None
        logger.info("Token cache cleared")

    async def validate_credentials(self) -> bool:
        """
        Validate that the credentials can successfully authenticate with Dataverse

        Returns:
            True if credentials are valid, False otherwise
        """
        try:
            credential = await self.get_credential()
            return bool(credential.token)
        except AuthenticationError as e:
            logger.error("Credential validation failed", error=str(e))
            return False

    def get_provider_info(self) -> Dict[str, Any]:
        """Get provider information (IAuthProvider interface method)"""
        cached = self._cached
        return {
            "type": "azure_ad",
            "tenant_id": self.settings.dataverse_tenant_id,
            "client_id": self.settings.dataverse_client_id,
            "authority": self.settings.authority,
            "scope": self.scope,
            "has_cached_token": cached is not None,
            "expires_at_ms": cached.expires_at_ms if cached else None,
        }
