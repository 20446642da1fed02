"""
Data models for Dataverse MCP Server

Immutable value objects passed between the tool layer, the auth manager
and the Dataverse client.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Credentials are treated as expired this long before the provider's expiry
TOKEN_REFRESH_BUFFER_MS = 300_000

# Lifetime assumed when the identity provider reports no expiry
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class Credential:
    """Bearer credential issued by the identity provider"""

    token: str
    expires_at_ms: int
    token_type: str = "Bearer"

    def is_valid(self, now_ms: int, buffer_ms: int = TOKEN_REFRESH_BUFFER_MS) -> bool:
        """True while now is strictly before expiry minus the refresh buffer"""
        return now_ms < self.expires_at_ms - buffer_ms

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.token}"

    def __repr__(self) -> str:
        return f"Credential(token_type={self.token_type!r}, expires_at_ms={self.expires_at_ms})"


@dataclass(frozen=True)
class QueryOptions:
    """OData system query options; only fields that are set are emitted"""

    select: Optional[str] = None
    filter: Optional[str] = None
    orderby: Optional[str] = None
    top: Optional[int] = None
    skip: Optional[int] = None
    expand: Optional[str] = None
    count: Optional[bool] = None

    def is_empty(self) -> bool:
        return not any(
            value is not None
            for value in (
                self.select,
                self.filter,
                self.orderby,
                self.top,
                self.skip,
                self.expand,
                self.count,
            )
        )


@dataclass(frozen=True)
class CreateRecordRequest:
    table: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ReadRecordRequest:
    table: str
    id: str
    select: Optional[str] = None
    expand: Optional[str] = None


@dataclass(frozen=True)
class UpdateRecordRequest:
    table: str
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteRecordRequest:
    table: str
    id: str


@dataclass(frozen=True)
class QueryRecordsRequest:
    table: str
    options: QueryOptions = field(default_factory=QueryOptions)


@dataclass(frozen=True)
class AssociateRecordsRequest:
    """Link two records through a collection-valued navigation property"""

    table: str
    id: str
    relationship_name: str
    related_table: str
    related_id: str


@dataclass(frozen=True)
class DisassociateRecordsRequest:
    table: str
    id: str
    relationship_name: str
    related_id: str
