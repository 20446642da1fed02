"""
Server Factory for Dataverse MCP Server

Creates fully configured server instances using the auth and client factories.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import structlog
from fastmcp import FastMCP

from .config import Settings
from .errors import AuthenticationError
from .factories import AuthProviderFactory, ClientFactory
from .tools.registry import ToolRegistry

logger = structlog.get_logger(__name__)

SERVER_NAME = "Dataverse-MCP-Server"
SERVER_INSTRUCTIONS = (
    "Create, read, update, delete and query records in a Microsoft Dataverse "
    "environment. Use dataverse_list_tables to discover table names and "
    "dataverse_get_table_metadata to discover column names before writing data."
)


@asynccontextmanager
async def dataverse_client_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    """Close the Dataverse client attached to the server when it shuts down"""
    try:
        yield {}
    finally:
        client = getattr(server, "_dataverse_client", None)
        if client is not None:
            logger.info("Closing Dataverse client")
            await client.close()


class ServerFactory:
    """
    Factory for creating fully configured Dataverse MCP server instances.
    """

    @staticmethod
    async def create_configured_server(settings: Settings, validate_credentials: bool = True) -> FastMCP:
        """
        Create a fully configured and ready-to-run MCP server.

        Args:
            settings: Application settings
            validate_credentials: Acquire a token before returning so bad
                credentials fail at startup instead of on the first tool call

        Returns:
            FastMCP server with all tools registered
        """
        logger.info("Creating Dataverse MCP Server",
                   auth_provider=settings.auth_provider,
                   dataverse_client=settings.dataverse_client)

        try:
            mcp = FastMCP(
                name=SERVER_NAME,
                instructions=SERVER_INSTRUCTIONS,
                lifespan=dataverse_client_lifespan,
            )

            # 1. Create authentication provider
            auth_provider = AuthProviderFactory.create(settings)

            # Validate credentials on startup
            if validate_credentials and not await auth_provider.validate_credentials():
                raise AuthenticationError("Failed to validate Dataverse credentials")

            # 2. Create Dataverse client
            client = ClientFactory.create(settings, auth_provider)

            # 3. Register tools (inject client dependency)
            ToolRegistry.register_all_tools(mcp, client)

            # 4. Store references for cleanup by the lifespan
            mcp._dataverse_client = client
            mcp._auth_provider = auth_provider

            logger.info("Dataverse MCP Server created successfully",
                       total_tools=len(await mcp.get_tools()))
            return mcp

        except Exception as e:
            logger.error("Failed to create MCP server", error=str(e))
            raise


class ServerValidator:
    """
    Utility class for configuration and connectivity checks.
    """

    @staticmethod
    async def validate_configuration(settings: Settings) -> bool:
        """Validate configuration and Dataverse connectivity"""
        print("🔧 Validating Dataverse MCP Configuration...")

        print("✅ Configuration loaded")
        print(f"   - Environment URL: {settings.dataverse_environment_url}")
        print(f"   - Web API: {settings.api_base_url}")
        print(f"   - Tenant: {settings.dataverse_tenant_id}")
        print(f"   - Auth Provider: {settings.auth_provider}")
        print(f"   - Dataverse Client: {settings.dataverse_client}")

        # Test authentication using factory
        try:
            auth_provider = AuthProviderFactory.create(settings)
            if await auth_provider.validate_credentials():
                print("✅ Dataverse authentication successful")
            else:
                print("❌ Dataverse authentication failed")
                return False
        except Exception as e:
            print(f"❌ Authentication provider failed: {e}")
            return False

        # Test client using factory
        client = ClientFactory.create(settings, auth_provider)
        try:
            tables = await client.list_tables()
            print(f"✅ Dataverse service document retrieved ({len(tables):,} tables)")

            client_info = client.get_client_info()
            print(f"   - Client Type: {client_info.get('type')}")
            print(f"   - Capabilities: {', '.join(client_info.get('capabilities', []))}")
        except Exception as e:
            print(f"❌ Dataverse client failed: {e}")
            return False
        finally:
            await client.close()

        print("\n🎉 Configuration validation completed successfully!")
        return True
