"""
Tool Registry for Dataverse MCP Server

Registers the Dataverse record tools. Each tool validates its arguments,
calls the client and renders the outcome as text; failures are raised as
FastMCPError carrying a readable message.
"""

from typing import Any, Dict, Optional

import structlog
from fastmcp import FastMCP
from fastmcp.exceptions import FastMCPError

from ..client import IDataverseClient
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
from ..validation import (
    validate_guid,
    validate_non_negative_integer,
    validate_odata_query,
    validate_optional_string,
    validate_positive_integer,
    validate_record_data,
    validate_table_name,
)
from .formatting import (
    format_query_result,
    format_record,
    format_table_list,
    format_table_metadata,
)

logger = structlog.get_logger(__name__)


class ToolRegistry:
    """
    Centralized tool registration for Dataverse record operations.
    """

    @staticmethod
    def register_all_tools(mcp: FastMCP, client: IDataverseClient) -> None:
        """Register all MCP tools"""
        logger.info("Registering Dataverse MCP tools")

        ToolRegistry._register_record_tools(mcp, client)
        ToolRegistry._register_relationship_tools(mcp, client)
        ToolRegistry._register_discovery_tools(mcp, client)

        logger.info("All MCP tools registered successfully")

    @staticmethod
    def _register_record_tools(mcp: FastMCP, client: IDataverseClient) -> None:
        """Register CRUD and query tools"""

        @mcp.tool
        async def dataverse_create_record(table: str, data: Dict[str, Any]) -> str:
            """
            Create a new record in a Dataverse table.

            Args:
                table: The name of the Dataverse table (e.g., "contacts", "accounts")
                data: The data for the new record as key-value pairs

            Returns:
                Confirmation text with the new record's ID
            """
            try:
                request = CreateRecordRequest(
                    table=validate_table_name(table), data=validate_record_data(data)
                )
                record_id = await client.create_record(request)
                return f"Successfully created record in table '{request.table}' with ID: {record_id}"
            except Exception as e:
                logger.error("Create record failed", table=table, error=str(e))
                raise FastMCPError(f"Failed to create record: {e}")

        @mcp.tool
        async def dataverse_read_record(
            table: str,
            id: str,
            select: Optional[str] = None,
            expand: Optional[str] = None,
        ) -> str:
            """
            Read a single record from a Dataverse table by ID.

            Args:
                table: The name of the Dataverse table (e.g., "contacts", "accounts")
                id: The GUID of the record to read
                select: Comma-separated list of columns to select (optional)
                expand: Related entities to expand (optional)
            """
            try:
                request = ReadRecordRequest(
                    table=validate_table_name(table),
                    id=validate_guid(id),
                    select=validate_optional_string(select, "select"),
                    expand=validate_optional_string(expand, "expand"),
                )
                record = await client.read_record(request)
                return format_record(request.table, record)
            except Exception as e:
                logger.error("Read record failed", table=table, record_id=id, error=str(e))
                raise FastMCPError(f"Failed to read record: {e}")

        @mcp.tool
        async def dataverse_update_record(table: str, id: str, data: Dict[str, Any]) -> str:
            """
            Update an existing record in a Dataverse table.

            Args:
                table: The name of the Dataverse table (e.g., "contacts", "accounts")
                id: The GUID of the record to update
                data: The data to update as key-value pairs
            """
            try:
                request = UpdateRecordRequest(
                    table=validate_table_name(table),
                    id=validate_guid(id),
                    data=validate_record_data(data),
                )
                await client.update_record(request)
                return f"Successfully updated record {request.id} in table '{request.table}'"
            except Exception as e:
                logger.error("Update record failed", table=table, record_id=id, error=str(e))
                raise FastMCPError(f"Failed to update record: {e}")

        @mcp.tool
        async def dataverse_delete_record(table: str, id: str) -> str:
            """
            Delete a record from a Dataverse table.

            Args:
                table: The name of the Dataverse table (e.g., "contacts", "accounts")
                id: The GUID of the record to delete
            """
            try:
                request = DeleteRecordRequest(table=validate_table_name(table), id=validate_guid(id))
                await client.delete_record(request)
                return f"Successfully deleted record {request.id} from table '{request.table}'"
            except Exception as e:
                logger.error("Delete record failed", table=table, record_id=id, error=str(e))
                raise FastMCPError(f"Failed to delete record: {e}")

        @mcp.tool
        async def dataverse_query_records(
            table: str,
            select: Optional[str] = None,
            filter: Optional[str] = None,
            orderby: Optional[str] = None,
            top: Optional[int] = None,
            skip: Optional[int] = None,
            expand: Optional[str] = None,
            count: bool = False,
        ) -> str:
            """
            Query multiple records from a Dataverse table with OData filters.

            Results are not paged automatically; when more records exist the
            response says so and skip can be used to fetch the next page.

            Args:
                table: The name of the Dataverse table (e.g., "contacts", "accounts")
                select: Comma-separated list of columns to select (optional)
                filter: OData filter expression (optional, e.g., "firstname eq 'John'")
                orderby: OData orderby expression (optional, e.g., "createdon desc")
                top: Maximum number of records to return (optional)
                skip: Number of records to skip (optional)
                expand: Related entities to expand (optional)
                count: Include total count in response (optional)
            """
            try:
                options = QueryOptions(
                    select=validate_optional_string(select, "select"),
                    filter=validate_odata_query(filter, "filter") if filter else None,
                    orderby=validate_odata_query(orderby, "orderby") if orderby else None,
                    top=validate_positive_integer(top, "top") if top is not None else None,
                    skip=validate_non_negative_integer(skip, "skip") if skip is not None else None,
                    expand=validate_optional_string(expand, "expand"),
                    count=True if count else None,
                )
                request = QueryRecordsRequest(table=validate_table_name(table), options=options)
                response = await client.query_records(request)
                return format_query_result(request.table, response)
            except Exception as e:
                logger.error("Query records failed", table=table, error=str(e))
                raise FastMCPError(f"Failed to query records: {e}")

    @staticmethod
    def _register_relationship_tools(mcp: FastMCP, client: IDataverseClient) -> None:
        """Register association tools"""

        @mcp.tool
        async def dataverse_associate_records(
            table: str,
            id: str,
            relationship_name: str,
            related_table: str,
            related_id: str,
        ) -> str:
            """
            Associate two records through a relationship.

            Args:
                table: Table of the source record (e.g., "accounts")
                id: The GUID of the source record
                relationship_name: Navigation property of the relationship
                    (e.g., "contact_customer_accounts")
                related_table: Table of the record to link (e.g., "contacts")
                related_id: The GUID of the record to link
            """
            try:
                request = AssociateRecordsRequest(
                    table=validate_table_name(table),
                    id=validate_guid(id),
                    relationship_name=validate_table_name(relationship_name, "relationship_name"),
                    related_table=validate_table_name(related_table, "related_table"),
                    related_id=validate_guid(related_id, "related_id"),
                )
                await client.associate_records(request)
                return (
                    f"Successfully associated record {request.id} in table '{request.table}' "
                    f"with record {request.related_id} in table '{request.related_table}' "
                    f"via '{request.relationship_name}'"
                )
            except Exception as e:
                logger.error("Associate records failed", table=table, record_id=id, error=str(e))
                raise FastMCPError(f"Failed to associate records: {e}")

        @mcp.tool
        async def dataverse_disassociate_records(
            table: str,
            id: str,
            relationship_name: str,
            related_id: str,
        ) -> str:
            """
            Remove the association between two records.

            Args:
                table: Table of the source record (e.g., "accounts")
                id: The GUID of the source record
                relationship_name: Navigation property of the relationship
                related_id: The GUID of the associated record
            """
            try:
                request = DisassociateRecordsRequest(
                    table=validate_table_name(table),
                    id=validate_guid(id),
                    relationship_name=validate_table_name(relationship_name, "relationship_name"),
                    related_id=validate_guid(related_id, "related_id"),
                )
                await client.disassociate_records(request)
                return (
                    f"Successfully disassociated record {request.related_id} from record "
                    f"{request.id} in table '{request.table}' via '{request.relationship_name}'"
                )
            except Exception as e:
                logger.error("Disassociate records failed", table=table, record_id=id, error=str(e))
                raise FastMCPError(f"Failed to disassociate records: {e}")

    @staticmethod
    def _register_discovery_tools(mcp: FastMCP, client: IDataverseClient) -> None:
        """Register table discovery tools"""

        @mcp.tool
        async def dataverse_list_tables() -> str:
            """
            List all available tables in the Dataverse environment.

            Returns:
                Sorted list of entity set names usable as the table argument
            """
            try:
                tables = await client.list_tables()
                return format_table_list(tables)
            except Exception as e:
                logger.error("List tables failed", error=str(e))
                raise FastMCPError(f"Failed to list tables: {e}")

        @mcp.tool
        async def dataverse_get_table_metadata(table: str) -> str:
            """
            Get column definitions for a Dataverse table.

            Args:
                table: Entity set name as returned by dataverse_list_tables (e.g., "contacts")

            Returns:
                Entity definition with logical name, display name and attributes
            """
            try:
                table_name = validate_table_name(table)
                metadata = await client.get_table_metadata(table_name)
                return format_table_metadata(table_name, metadata)
            except Exception as e:
                logger.error("Get table metadata failed", table=table, error=str(e))
                raise FastMCPError(f"Failed to get metadata for {table}: {e}")
