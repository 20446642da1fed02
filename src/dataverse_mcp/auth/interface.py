"""
Authentication Provider Interface

Defines contract for credential providers (Azure AD service principal, mock, etc.)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any

from ..errors import AuthenticationError
from ..models import Credential

__all__ = ["IAuthProvider", "AuthenticationError"]


class IAuthProvider(ABC):
    """Interface for authentication providers"""

    @abstractmethod
    async def get_credential(self) -> Credential:
        """
        Get a credential that is valid for at least the refresh buffer.

        Returns:
            Cached credential, or a freshly issued one if the cache is empty or stale

        Raises:
            AuthenticationError: If the identity provider exchange fails
        """
        pass

    async def authorization_header(self) -> str:
        """Get a ready-to-send Authorization header value ("Bearer <token>")"""
        credential = await self.get_credential()
        return credential.authorization_header

    @abstractmethod
    def invalidate(self) -> None:
        """Drop any cached credential so the next call performs a new exchange"""
        pass

    async def validate_credentials(self) -> bool:
        """
        Validate that credentials are properly configured and working.

        Returns:
            True if a credential could be obtained
        """
        try:
            await self.get_credential()
            return True
        except AuthenticationError:
            return False

    @abstractmethod
    def get_provider_info(self) -> Dict[str, Any]:
        """
        Get information about the auth provider.

        Returns:
            Provider metadata (type, settings, etc.)
        """
        pass
