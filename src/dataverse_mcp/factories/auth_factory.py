"""
Authentication Provider Factory

Creates auth provider instances based on configuration.
"""

import time
from typing import Dict, Any

import structlog

from ..config import Settings
from ..auth import IAuthProvider, DataverseAuthManager
from ..models import Credential

logger = structlog.get_logger(__name__)


class MockAuthProvider(IAuthProvider):
    """Mock auth provider for offline use and testing"""

    def __init__(self) -> None:
        self.mock_token = "mock_bearer_token_12345"
        self.issued_count = 0
        self._cached: Credential | None = None

    async def get_credential(self) -> Credential:
        """Returns a mock credential valid for one hour"""
        if self._cached is None:
            self.issued_count += 1
            self._cached = Credential(
                token=self.mock_token,
                expires_at_ms=int(time.time() * 1000) + 3_600_000,
            )
        return self._cached

    def invalidate(self) -> None:
        self._cached = None

    def get_provider_info(self) -> Dict[str, Any]:
        """Returns mock provider info"""
        return {
            "type": "mock",
            "mock_token": self.mock_token[:20] + "...",
            "issued_count": self.issued_count,
            "status": "active"
        }


class AuthProviderFactory:
    """Factory for creating authentication providers"""

    @staticmethod
    def create(settings: Settings) -> IAuthProvider:
        """
        Create auth provider based on configuration.

        Args:
            settings: Application settings

        Returns:
            Configured auth provider instance

        Raises:
            ValueError: If provider type is not supported
        """
        provider_type = settings.auth_provider.lower()

        logger.info("Creating auth provider", provider_type=provider_type)

        if provider_type == "azure_ad":
            return DataverseAuthManager(settings)
        elif provider_type == "mock":
            return MockAuthProvider()
        else:
            raise ValueError(f"Unsupported auth provider: {provider_type}")

    @staticmethod
    def get_available_providers() -> list[str]:
        """Get list of available auth provider types"""
        return ["azure_ad", "mock"]
