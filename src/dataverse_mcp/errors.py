"""
Error types for Dataverse MCP Server

Every failure raised by the auth, client and validation layers derives from
DataverseMCPError so the tool layer can render it uniformly.
"""

from typing import Any, Dict, Optional


class DataverseMCPError(Exception):
    """Base class for all server errors"""
    pass


class ConfigurationError(DataverseMCPError):
    """Required configuration is missing or invalid"""
    pass


class AuthenticationError(DataverseMCPError):
    """Identity provider exchange failed or returned no usable token"""
    pass


class ValidationError(DataverseMCPError):
    """Tool input failed validation before reaching the client"""
    pass


class RequestConstructionError(DataverseMCPError):
    """Request could not be built or handed to the transport"""
    pass


class DataIntegrityError(DataverseMCPError):
    """Successful response lacked a field the operation depends on"""
    pass


class RemoteError(DataverseMCPError):
    """
    Failed exchange with the Dataverse Web API.

    Attributes:
        status_code: HTTP status, None when no response was received
        code: Dataverse error code from the error envelope (e.g. '0x80040217')
        message: Human readable message
        inner_message: Message from the envelope's innererror, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        inner_message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.inner_message = inner_message

    def __str__(self) -> str:
        parts = []
        if self.status_code is not None:
            parts.append(f"HTTP {self.status_code}")
        if self.code:
            parts.append(f"[{self.code}]")
        prefix = " ".join(parts)
        text = f"{prefix}: {self.message}" if prefix else self.message
        if self.inner_message and self.inner_message != self.message:
            text += f" ({self.inner_message})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "code": self.code,
            "message": self.message,
            "inner_message": self.inner_message,
        }


class TransportError(RemoteError):
    """Request was sent but no response arrived (network failure or timeout)"""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=None)
