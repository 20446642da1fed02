"""
Pytest configuration and fixtures for Dataverse MCP tests
"""

from typing import Callable, List

import httpx
import pytest
from unittest.mock import MagicMock
from azure.core.credentials import AccessToken

from dataverse_mcp.config import Settings
from dataverse_mcp.client import DataverseClient
from dataverse_mcp.factories import MockAuthProvider, MockDataverseClient

ENVIRONMENT_URL = "https://contoso.crm.dynamics.com"


@pytest.fixture
def mock_settings():
    """Settings for testing, isolated from any .env file"""
    return Settings(
        dataverse_client_id="test-client-id",
        dataverse_client_secret="test-client-secret",
        dataverse_tenant_id="test-tenant-id",
        dataverse_environment_url=ENVIRONMENT_URL,
        _env_file=None,
    )


@pytest.fixture
def mock_settings_offline(mock_settings):
    """Settings selecting the mock auth provider and in-memory client"""
    return mock_settings.model_copy(update={"auth_provider": "mock", "dataverse_client": "mock"})


@pytest.fixture
def token_credential():
    """azure-identity style credential returning a token that expires at 10_000_000s"""
    credential = MagicMock()
    credential.get_token.return_value = AccessToken("token-1", 10_000_000)
    return credential


@pytest.fixture
def mock_auth_provider():
    return MockAuthProvider()


@pytest.fixture
def sent_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
async def make_client(mock_settings, mock_auth_provider, sent_requests):
    """Build a DataverseClient whose transport is answered by the given handler"""
    clients = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> DataverseClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        client = DataverseClient(
            mock_settings, mock_auth_provider, transport=httpx.MockTransport(recording_handler)
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()


@pytest.fixture
def mock_dataverse_client(mock_auth_provider):
    return MockDataverseClient(mock_auth_provider)

