"""
Tests for the DataverseAuthManager credential cache
"""

import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from dataverse_mcp.auth import AuthenticationError, DataverseAuthManager
from dataverse_mcp.models import Credential

# Expiry reported by the token_credential fixture, in milliseconds
EXPIRES_AT_MS = 10_000_000 * 1000


class FakeClock:
    def __init__(self, now_ms: int):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


@pytest.mark.unit
class TestDataverseAuthManager:
    @pytest.fixture
    def clock(self):
        return FakeClock(EXPIRES_AT_MS - 3_600_000)

    @pytest.fixture
    def auth_manager(self, mock_settings, token_credential, clock):
        return DataverseAuthManager(mock_settings, credential=token_credential, clock=clock)

    async def test_first_call_performs_exchange(self, auth_manager, token_credential):
        """Test the first call exchanges client credentials for a token"""
        credential = await auth_manager.get_credential()

        assert credential == Credential(token="token-1", expires_at_ms=EXPIRES_AT_MS)
        assert credential.token_type == "Bearer"
        token_credential.get_token.assert_called_once_with(
            "https://contoso.crm.dynamics.com/.default"
        )

    async def test_repeated_calls_within_window_return_cached_value(
        self, auth_manager, token_credential
    ):
        """Test repeated calls inside the validity window reuse the cached credential"""
        first = await auth_manager.get_credential()
        second = await auth_manager.get_credential()
        third = await auth_manager.get_credential()

        assert first is second is third
        assert token_credential.get_token.call_count == 1

    async def test_cached_just_outside_refresh_buffer(self, auth_manager, token_credential, clock):
        """Test a credential expiring in just over five minutes is still served from cache"""
        await auth_manager.get_credential()

        clock.now_ms = EXPIRES_AT_MS - 301_000
        await auth_manager.get_credential()

        assert token_credential.get_token.call_count == 1

    async def test_refresh_inside_refresh_buffer(self, auth_manager, token_credential, clock):
        """Test a credential inside the refresh buffer triggers a new exchange"""
        await auth_manager.get_credential()

        token_credential.get_token.return_value = AccessToken("token-2", 10_003_600)
        clock.now_ms = EXPIRES_AT_MS - 299_000
        refreshed = await auth_manager.get_credential()

        assert token_credential.get_token.call_count == 2
        assert refreshed.token == "token-2"
        assert refreshed.expires_at_ms == 10_003_600 * 1000

    async def test_missing_expiry_defaults_to_one_hour(self, auth_manager, token_credential, clock):
        """Test a token without expiry is assumed to last one hour"""
        token_credential.get_token.return_value = AccessToken("token-1", 0)

        credential = await auth_manager.get_credential()

        assert credential.expires_at_ms == clock.now_ms + 3_600_000

    async def test_provider_error_raises_authentication_error(self, auth_manager, token_credential):
        """Test identity provider failures surface as AuthenticationError"""
        token_credential.get_token.side_effect = ClientAuthenticationError("AADSTS7000215: Invalid client secret")

        with pytest.raises(AuthenticationError, match="AADSTS7000215"):
            await auth_manager.get_credential()

    async def test_failed_exchange_is_not_cached(self, auth_manager, token_credential):
        """Test a failed exchange leaves the cache empty for the next call"""
        token_credential.get_token.side_effect = [
            ClientAuthenticationError("temporarily unavailable"),
            AccessToken("token-1", 10_000_000),
        ]

        with pytest.raises(AuthenticationError):
            await auth_manager.get_credential()
        credential = await auth_manager.get_credential()

        assert credential.token == "token-1"
        assert token_credential.get_token.call_count == 2

    async def test_empty_token_is_rejected(self, auth_manager, token_credential):
        """Test an empty access token is rejected and not cached"""
        token_credential.get_token.return_value = AccessToken("", 10_000_000)

        with pytest.raises(AuthenticationError, match="no access token"):
            await auth_manager.get_credential()
        assert auth_manager.get_provider_info()["has_cached_token"] is False

    async def test_invalidate_forces_new_exchange(self, auth_manager, token_credential):
        """Test invalidating the cache forces a new exchange"""
        await auth_manager.get_credential()
        auth_manager.invalidate()
        await auth_manager.get_credential()

        assert token_credential.get_token.call_count == 2

    async def test_authorization_header(self, auth_manager):
        """Test the Authorization header value"""
        assert await auth_manager.authorization_header() == "Bearer token-1"

    async def test_validate_credentials(self, auth_manager, token_credential):
        """Test credential validation reports success and failure"""
        assert await auth_manager.validate_credentials() is True

        auth_manager.invalidate()
        token_credential.get_token.side_effect = ClientAuthenticationError("denied")
        assert await auth_manager.validate_credentials() is False

    def test_provider_info_hides_secret(self, auth_manager):
        """Test provider info does not include the client secret"""
        info = auth_manager.get_provider_info()

        assert info["type"] == "azure_ad"
        assert info["authority"] == "https://login.microsoftonline.com/test-tenant-id"
        assert "test-client-secret" not in str(info)


@pytest.mark.unit
class TestCredential:
    def test_validity_uses_five_minute_buffer(self):
        """Test credential validity honours the five minute buffer"""
        credential = Credential(token="t", expires_at_ms=1_000_000)

        assert credential.is_valid(1_000_000 - 300_001)
        assert not credential.is_valid(1_000_000 - 300_000)

    def test_repr_does_not_leak_token(self):
        """Test the credential repr hides the token"""
        assert "secret-token" not in repr(Credential(token="secret-token", expires_at_ms=1))
