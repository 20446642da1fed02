"""
Dataverse Client module

HTTP client for the Dataverse Web API (OData v4).
"""

from .interface import IDataverseClient
from .dataverse_client import DataverseClient
from .query import build_query_string

__all__ = [
    "IDataverseClient",
    "DataverseClient",
    "build_query_string"
]
