"""
Dataverse MCP Server

Main entry point for the Dataverse MCP server.
"""

import argparse
import asyncio
from typing import Optional

import structlog

from .config import load_dotenv_if_exists, load_settings
from .errors import ConfigurationError
from .logging_config import LOG_LEVELS, configure_logging
from .server_factory import ServerFactory, ServerValidator

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dataverse MCP Server")
    parser.add_argument("--client-id", help="Azure AD application (client) ID")
    parser.add_argument("--client-secret", help="Azure AD client secret")
    parser.add_argument("--tenant-id", help="Azure AD tenant ID")
    parser.add_argument(
        "--environment-url", help="Dataverse environment URL (e.g. https://org.crm.dynamics.com)"
    )
    parser.add_argument(
        "--transport",
        choices=["stdio"],
        default="stdio",
        help="Transport mode (currently only stdio supported)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        help="Log level (default: info, or LOG_LEVEL from the environment)",
    )
    parser.add_argument(
        "--validate-config", action="store_true", help="Validate configuration and exit"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> Optional[int]:
    """Main entry point with command line argument parsing"""
    # Load environment variables
    load_dotenv_if_exists()

    args = build_parser().parse_args(argv)

    # Log to stderr at the requested level until settings are known
    configure_logging(args.log_level or "info")

    try:
        settings = load_settings(
            {
                "client_id": args.client_id,
                "client_secret": args.client_secret,
                "tenant_id": args.tenant_id,
                "environment_url": args.environment_url,
                "log_level": args.log_level,
            }
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration", error=str(e))
        return 1

    configure_logging(settings.log_level)

    # Handle special commands
    if args.validate_config:
        ok = asyncio.run(ServerValidator.validate_configuration(settings))
        return 0 if ok else 1

    # Create fully configured server
    try:
        mcp = asyncio.run(ServerFactory.create_configured_server(settings))
    except Exception as e:
        logger.error("Failed to initialize server", error=str(e))
        return 1

    if args.transport == "stdio":
        logger.info("Starting Dataverse MCP Server with STDIO transport")
        mcp.run(transport="stdio")
        return 0
    else:
        logger.error("Only STDIO transport is supported")
        return 1


if __name__ == "__main__":
    exit_code = main()
    exit(exit_code or 0)
