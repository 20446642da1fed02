"""
Dataverse Client Interface

Defines contract for Dataverse Web API clients
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List

from ..models import (
    AssociateRecordsRequest,
    CreateRecordRequest,
    DeleteRecordRequest,
    DisassociateRecordsRequest,
    QueryRecordsRequest,
    ReadRecordRequest,
    UpdateRecordRequest,
)


class IDataverseClient(ABC):
    """Interface for Dataverse Web API clients"""

    @abstractmethod
    async def create_record(self, request: CreateRecordRequest) -> str:
        """
        Create a new record via OData POST.

        Args:
            request: Target table and field values

        Returns:
            GUID of the created record

        Raises:
            DataIntegrityError: If the response carries no record identifier
        """
        pass

    @abstractmethod
    async def read_record(self, request: ReadRecordRequest) -> Dict[str, Any]:
        """
        Read a single record by GUID.

        Args:
            request: Table, record id and optional $select / $expand

        Returns:
            Record as returned by the service
        """
        pass

    @abstractmethod
    async def update_record(self, request: UpdateRecordRequest) -> None:
        """
        Update an existing record via OData PATCH.

        Args:
            request: Table, record id and fields to change
        """
        pass

    @abstractmethod
    async def delete_record(self, request: DeleteRecordRequest) -> None:
        """
        Delete a record via OData DELETE.

        Args:
            request: Table and record id
        """
        pass

    @abstractmethod
    async def query_records(self, request: QueryRecordsRequest) -> Dict[str, Any]:
        """
        Query a table with OData system query options.

        Args:
            request: Table and query options

        Returns:
            Collection response ("value", "@odata.count", "@odata.nextLink", ...)
        """
        pass

    @abstractmethod
    async def associate_records(self, request: AssociateRecordsRequest) -> None:
        """
        Associate two records through a relationship.

        Args:
            request: Source record, relationship and target record
        """
        pass

    @abstractmethod
    async def disassociate_records(self, request: DisassociateRecordsRequest) -> None:
        """
        Remove an association between two records.

        Args:
            request: Source record, relationship and target record id
        """
        pass

    @abstractmethod
    async def list_tables(self) -> List[str]:
        """
        List entity set names published by the service document.

        Returns:
            Entity set names in service order
        """
        pass

    @abstractmethod
    async def get_table_metadata(self, table: str) -> Dict[str, Any]:
        """
        Get the entity definition and attributes for a table.

        Args:
            table: Entity set name (e.g. 'contacts')

        Returns:
            Entity definition including its attributes
        """
        pass

    @abstractmethod
    def get_client_info(self) -> Dict[str, Any]:
        """
        Get client implementation information.

        Returns:
            Client metadata (type, version, capabilities, etc.)
        """
        pass

    async def close(self) -> None:
        """Release transport resources"""
        pass
