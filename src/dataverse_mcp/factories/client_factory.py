"""
Dataverse Client Factory

Creates client instances based on configuration.
"""

import uuid
from typing import Dict, Any, List, Set, Tuple

import structlog

from ..config import Settings
from ..auth import IAuthProvider
from ..client import IDataverseClient, DataverseClient
from ..errors import RemoteError
from ..models import (
    AssociateRecordsRequest,
    CreateRecordRequest,
    DeleteRecordRequest,
    DisassociateRecordsRequest,
    QueryRecordsRequest,
    ReadRecordRequest,
    UpdateRecordRequest,
)

logger = structlog.get_logger(__name__)

# Dataverse error code for "record does not exist"
OBJECT_DOES_NOT_EXIST = "0x80040217"


class MockDataverseClient(IDataverseClient):
    """In-memory Dataverse client for offline use and testing"""

    def __init__(self, auth_provider: IAuthProvider):
        self.auth_provider = auth_provider
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {"accounts": {}, "contacts": {}}
        self.associations: Set[Tuple[str, str, str, str]] = set()

    def _get(self, table: str, record_id: str) -> Dict[str, Any]:
        record = self.tables.get(table, {}).get(record_id.lower())
        if record is None:
            raise RemoteError(
                f"{table} With Id = {record_id} Does Not Exist",
                status_code=404,
                code=OBJECT_DOES_NOT_EXIST,
            )
        return record

    async def create_record(self, request: CreateRecordRequest) -> str:
        """Stores the record under a new GUID"""
        await self.auth_provider.get_credential()
        record_id = str(uuid.uuid4())
        singular = request.table[:-1] if request.table.endswith("s") else request.table
        self.tables.setdefault(request.table, {})[record_id] = {
            **request.data,
            f"{singular}id": record_id,
        }
        return record_id

    async def read_record(self, request: ReadRecordRequest) -> Dict[str, Any]:
        await self.auth_provider.get_credential()
        record = dict(self._get(request.table, request.id))
        if request.select:
            columns = [column.strip() for column in request.select.split(",")]
            record = {key: value for key, value in record.items() if key in columns}
        return record

    async def update_record(self, request: UpdateRecordRequest) -> None:
        await self.auth_provider.get_credential()
        self._get(request.table, request.id).update(request.data)

    async def delete_record(self, request: DeleteRecordRequest) -> None:
        await self.auth_provider.get_credential()
        self._get(request.table, request.id)
        del self.tables[request.table][request.id.lower()]

    async def query_records(self, request: QueryRecordsRequest) -> Dict[str, Any]:
        """Returns stored records; only $top, $skip and $count are honoured"""
        await self.auth_provider.get_credential()
        options = request.options
        records: List[Dict[str, Any]] = list(self.tables.get(request.table, {}).values())
        total = len(records)

        start = options.skip or 0
        end = start + options.top if options.top else None
        result: Dict[str, Any] = {
            "@odata.context": f"MockContext#{request.table}",
            "value": records[start:end],
        }
        if options.count:
            result["@odata.count"] = total
        if end is not None and end < total:
            result["@odata.nextLink"] = f"MockContext#{request.table}?$skip={end}"
        return result

    async def associate_records(self, request: AssociateRecordsRequest) -> None:
        await self.auth_provider.get_credential()
        self._get(request.table, request.id)
        self._get(request.related_table, request.related_id)
        self.associations.add(
            (request.table, request.id.lower(), request.relationship_name, request.related_id.lower())
        )

    async def disassociate_records(self, request: DisassociateRecordsRequest) -> None:
        await self.auth_provider.get_credential()
        key = (request.table, request.id.lower(), request.relationship_name, request.related_id.lower())
        if key not in self.associations:
            raise RemoteError("Association does not exist", status_code=404, code=OBJECT_DOES_NOT_EXIST)
        self.associations.discard(key)

    async def list_tables(self) -> List[str]:
        await self.auth_provider.get_credential()
        return list(self.tables)

    async def get_table_metadata(self, table: str) -> Dict[str, Any]:
        await self.auth_provider.get_credential()
        if table not in self.tables:
            raise RemoteError(f"Table '{table}' not found", status_code=404)
        singular = table[:-1] if table.endswith("s") else table
        return {
            "LogicalName": singular,
            "EntitySetName": table,
            "PrimaryIdAttribute": f"{singular}id",
            "Attributes": [
                {"LogicalName": f"{singular}id", "AttributeType": "Uniqueidentifier", "IsPrimaryId": True},
            ],
        }

    def get_client_info(self) -> Dict[str, Any]:
        """Returns mock client info"""
        return {
            "type": "mock_client",
            "version": "1.0.0",
            "capabilities": ["create", "read", "update", "delete", "query", "associate",
                             "disassociate", "list_tables", "table_metadata"],
            "tables": list(self.tables),
        }


class ClientFactory:
    """Factory for creating Dataverse clients"""

    @staticmethod
    def create(settings: Settings, auth_provider: IAuthProvider) -> IDataverseClient:
        """
        Create Dataverse client based on configuration.

        Args:
            settings: Application settings
            auth_provider: Configured auth provider

        Returns:
            Configured Dataverse client instance

        Raises:
            ValueError: If client type is not supported
        """
        client_type = settings.dataverse_client.lower()

        logger.info("Creating Dataverse client", client_type=client_type)

        if client_type == "odata":
            return DataverseClient(settings, auth_provider)
        elif client_type == "mock":
            return MockDataverseClient(auth_provider)
        else:
            raise ValueError(f"Unsupported Dataverse client: {client_type}")

    @staticmethod
    def get_available_clients() -> list[str]:
        """Get list of available client types"""
        return ["odata", "mock"]
