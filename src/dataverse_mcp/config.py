"""
Configuration management for Dataverse MCP Server
"""

from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError, ValidationError
from .validation import validate_url

logger = structlog.get_logger(__name__)

API_VERSION = "v9.2"

# CLI option name -> settings field
CLI_OPTION_FIELDS = {
    "client_id": "dataverse_client_id",
    "client_secret": "dataverse_client_secret",
    "tenant_id": "dataverse_tenant_id",
    "environment_url": "dataverse_environment_url",
    "log_level": "log_level",
}


class Settings(BaseSettings):
    """Application settings loaded from CLI overrides, environment variables and .env"""

    # Dataverse Authentication (Required)
    dataverse_client_id: str
    dataverse_client_secret: str
    dataverse_tenant_id: str
    dataverse_environment_url: str

    # Optional Configuration
    log_level: Literal["debug", "info", "warning", "error"] = "info"
    request_timeout: float = 30.0

    # Implementation Selection (for Dependency Injection)
    auth_provider: Literal["azure_ad", "mock"] = "azure_ad"
    dataverse_client: Literal["odata", "mock"] = "odata"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "dataverse_client_id",
        "dataverse_client_secret",
        "dataverse_tenant_id",
        "dataverse_environment_url",
    )
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("dataverse_environment_url")
    @classmethod
    def _normalize_environment_url(cls, value: str) -> str:
        try:
            validate_url(value, "environment URL", schemes=("http", "https"))
        except ValidationError as e:
            raise ValueError(f"{e}, e.g. https://org.crm.dynamics.com") from e
        return value.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_log_level(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @property
    def api_base_url(self) -> str:
        """Get Dataverse Web API root"""
        return f"{self.dataverse_environment_url}/api/data/{API_VERSION}"

    @property
    def token_scope(self) -> str:
        """Get client-credentials scope for the environment"""
        return f"{self.dataverse_environment_url}/.default"

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.dataverse_tenant_id}"


def load_settings(overrides: Optional[Mapping[str, Optional[str]]] = None) -> Settings:
    """
    Build settings with CLI overrides taking priority over the environment.

    Args:
        overrides: CLI values keyed by option name (client_id, tenant_id, ...);
            None values are ignored

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    init_kwargs: Dict[str, Any] = {}
    for option, value in (overrides or {}).items():
        if value is None:
            continue
        init_kwargs[CLI_OPTION_FIELDS.get(option, option)] = value

    try:
        settings = Settings(**init_kwargs)
    except PydanticValidationError as e:
        problems = []
        for error in e.errors():
            field = str(error["loc"][0]) if error["loc"] else "settings"
            option = field.replace("dataverse_", "").replace("_", "-")
            if error["type"] == "missing":
                problems.append(
                    f"Missing required configuration: {field}. Provide it via --{option} "
                    f"or the {field.upper()} environment variable."
                )
            else:
                problems.append(f"Invalid configuration {field}: {error['msg']}")
        raise ConfigurationError(" ".join(problems)) from e

    logger.info(
        "Configuration loaded",
        environment_url=settings.dataverse_environment_url,
        log_level=settings.log_level,
        source="cli+environment" if init_kwargs else "environment",
    )
    return settings


def load_dotenv_if_exists() -> None:
    """Load .env file if it exists"""
    from dotenv import load_dotenv

    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)
    else:
        # Try to load from parent directories
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            env_path = parent / ".env"
            if env_path.exists():
                load_dotenv(env_path)
                break
