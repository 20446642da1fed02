"""
Authentication module for Dataverse MCP Server

Handles Azure AD client-credentials authentication for the Dataverse Web API.
"""

from .interface import IAuthProvider, AuthenticationError
from .dataverse_auth import DataverseAuthManager

__all__ = [
    "IAuthProvider",
    "AuthenticationError",
    "DataverseAuthManager"
]
