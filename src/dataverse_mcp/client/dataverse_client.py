"""
Dataverse Web API Client

Issues OData v4 requests against <environment>/api/data/v9.2. Every request
gets a freshly obtained bearer credential immediately before it is sent, and
every failure is classified into RemoteError, TransportError or
RequestConstructionError before being raised.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..auth import IAuthProvider
from ..config import Settings
from ..errors import DataverseMCPError, RemoteError
from ..models import (
    AssociateRecordsRequest,
    CreateRecordRequest,
    DeleteRecordRequest,
    DisassociateRecordsRequest,
    QueryOptions,
    QueryRecordsRequest,
    ReadRecordRequest,
    UpdateRecordRequest,
)
from ..validation import sanitize_odata_string
from .interface import IDataverseClient
from .query import build_query_string, classify_error, extract_record_id

logger = structlog.get_logger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
}

TABLE_METADATA_SELECT = "LogicalName,EntitySetName,PrimaryIdAttribute,DisplayName,Description"
ATTRIBUTE_METADATA_EXPAND = (
    "Attributes($select=LogicalName,DisplayName,AttributeType,IsPrimaryId,"
    "IsValidForCreate,IsValidForUpdate,RequiredLevel)"
)


class DataverseClient(IDataverseClient):
    """HTTP client for the Dataverse Web API"""

    def __init__(
        self,
        settings: Settings,
        auth_provider: IAuthProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.auth_provider = auth_provider
        self.base_url = settings.api_base_url
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=DEFAULT_HEADERS,
            timeout=httpx.Timeout(settings.request_timeout),
            transport=transport,
        )

        logger.info(
            "Dataverse client initialized",
            base_url=self.base_url,
            timeout_seconds=settings.request_timeout,
        )

    async def __aenter__(self) -> "DataverseClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def dispatch(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Send one authenticated request.

        Attaches the Authorization header, sends, then classifies any failure.

        Args:
            method: HTTP method
            path: Path relative to the Web API root, including any query string
            json: JSON body
            headers: Extra headers for this request only

        Returns:
            2xx response

        Raises:
            AuthenticationError: If no credential could be obtained
            RemoteError: Non-2xx response (TransportError when no response arrived)
            RequestConstructionError: Request could not be built
        """
        request_headers = dict(headers or {})
        request_headers["Authorization"] = await self.auth_provider.authorization_header()

        try:
            response = await self._http.request(method, path, json=json, headers=request_headers)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as e:
            classified = classify_error(e)
            self._log_failure(method, path, classified)
            raise classified from e

        logger.debug(
            "Dataverse request completed",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response

    def _log_failure(self, method: str, path: str, error: DataverseMCPError) -> None:
        if isinstance(error, RemoteError) and error.status_code is not None:
            logger.error(
                "Dataverse API error",
                method=method,
                path=path,
                status_code=error.status_code,
                code=error.code,
                message=error.message,
            )
            if error.inner_message:
                logger.debug("Dataverse inner error", inner_message=error.inner_message)
        elif isinstance(error, RemoteError):
            logger.error("Network error - no response received", method=method, path=path, error=str(error))
        else:
            logger.error("Request setup error", method=method, path=path, error=str(error))

    @staticmethod
    def _json_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteError(
                "Malformed response from Dataverse: body is not valid JSON",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise RemoteError(
                "Malformed response from Dataverse: expected a JSON object",
                status_code=response.status_code,
            )
        return body

    async def create_record(self, request: CreateRecordRequest) -> str:
        """
        Create a new record in the specified table.

        Returns:
            GUID of the new record
        """
        logger.info("Creating record", table=request.table)
        logger.debug("Record data", table=request.table, fields=sorted(request.data))

        response = await self.dispatch(
            "POST",
            f"/{request.table}",
            json=request.data,
            headers={"Prefer": "return=representation"},
        )

        # The body is only consulted when the entity id header is absent
        body = None
        if not response.headers.get("OData-EntityId") and response.content:
            body = self._json_body(response)
        record_id = extract_record_id(request.table, response.headers, body)

        logger.info("Record created successfully", table=request.table, record_id=record_id)
        return record_id

    async def read_record(self, request: ReadRecordRequest) -> Dict[str, Any]:
        """Read a single record by ID"""
        logger.info("Reading record", table=request.table, record_id=request.id)

        query = build_query_string(QueryOptions(select=request.select, expand=request.expand))
        response = await self.dispatch("GET", f"/{request.table}({request.id}){query}")
        record = self._json_body(response)

        logger.info("Record retrieved successfully", table=request.table, record_id=request.id)
        return record

    async def update_record(self, request: UpdateRecordRequest) -> None:
        """Update an existing record"""
        logger.info("Updating record", table=request.table, record_id=request.id)
        logger.debug("Update data", table=request.table, fields=sorted(request.data))

        await self.dispatch("PATCH", f"/{request.table}({request.id})", json=request.data)

        logger.info("Record updated successfully", table=request.table, record_id=request.id)

    async def delete_record(self, request: DeleteRecordRequest) -> None:
        """Delete a record"""
        logger.info("Deleting record", table=request.table, record_id=request.id)

        await self.dispatch("DELETE", f"/{request.table}({request.id})")

        logger.info("Record deleted successfully", table=request.table, record_id=request.id)

    async def query_records(self, request: QueryRecordsRequest) -> Dict[str, Any]:
        """
        Query multiple records with OData options.

        The collection response is returned unchanged; "@odata.nextLink" is
        surfaced to the caller, never followed.
        """
        logger.info("Querying records", table=request.table)

        query = build_query_string(request.options)
        logger.debug("Query string", table=request.table, query=query)

        response = await self.dispatch("GET", f"/{request.table}{query}")
        result = self._json_body(response)

        logger.info(
            "Query completed successfully",
            table=request.table,
            record_count=len(result.get("value") or []),
            has_next_page="@odata.nextLink" in result,
        )
        return result

    async def associate_records(self, request: AssociateRecordsRequest) -> None:
        """Associate two records"""
        logger.info(
            "Associating records",
            table=request.table,
            record_id=request.id,
            relationship=request.relationship_name,
            related_table=request.related_table,
            related_id=request.related_id,
        )

        reference = {"@odata.id": f"{self.base_url}/{request.related_table}({request.related_id})"}
        await self.dispatch(
            "POST",
            f"/{request.table}({request.id})/{request.relationship_name}/$ref",
            json=reference,
        )

        logger.info("Records associated successfully", relationship=request.relationship_name)

    async def disassociate_records(self, request: DisassociateRecordsRequest) -> None:
        """Disassociate two records"""
        logger.info(
            "Disassociating records",
            table=request.table,
            record_id=request.id,
            relationship=request.relationship_name,
            related_id=request.related_id,
        )

        await self.dispatch(
            "DELETE",
            f"/{request.table}({request.id})/{request.relationship_name}({request.related_id})/$ref",
        )

        logger.info("Records disassociated successfully", relationship=request.relationship_name)

    async def list_tables(self) -> List[str]:
        """List all entity sets published by the service document"""
        logger.info("Retrieving list of available tables")

        response = await self.dispatch("GET", "")
        body = self._json_body(response)
        entries = body.get("value")
        if not isinstance(entries, list):
            raise RemoteError(
                "Malformed service document: missing 'value' list",
                status_code=response.status_code,
            )

        tables = [
            entry["name"]
            for entry in entries
            if isinstance(entry, dict) and entry.get("kind") == "EntitySet" and entry.get("name")
        ]

        logger.info("Retrieved tables", count=len(tables))
        return tables

    async def get_table_metadata(self, table: str) -> Dict[str, Any]:
        """
        Get the entity definition of a table, looked up by entity set name.

        Returns:
            EntityDefinition with LogicalName, DisplayName and Attributes
        """
        logger.info("Retrieving table metadata", table=table)

        query = build_query_string(
            QueryOptions(
                select=TABLE_METADATA_SELECT,
                filter=f"EntitySetName eq '{sanitize_odata_string(table)}'",
                expand=ATTRIBUTE_METADATA_EXPAND,
            )
        )
        response = await self.dispatch("GET", f"/EntityDefinitions{query}")
        definitions = self._json_body(response).get("value") or []
        if not definitions:
            raise RemoteError(f"Table '{table}' not found", status_code=404)

        metadata: Dict[str, Any] = definitions[0]
        logger.info(
            "Metadata retrieved successfully",
            table=table,
            attribute_count=len(metadata.get("Attributes") or []),
        )
        return metadata

    def get_client_info(self) -> Dict[str, Any]:
        """
        Get client implementation information.

        Returns:
            Client metadata (type, version, capabilities, etc.)
        """
        return {
            "type": "odata_client",
            "version": "1.0.0",
            "base_url": self.base_url,
            "timeout_seconds": self.settings.request_timeout,
            "capabilities": [
                "create",
                "read",
                "update",
                "delete",
                "query",
                "associate",
                "disassociate",
                "list_tables",
                "table_metadata",
            ],
        }
