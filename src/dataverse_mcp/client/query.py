"""
OData query helpers

Query-string construction, record identifier extraction and failure
classification used by DataverseClient. Everything here is side-effect free.
"""

import re
from typing import Any, Mapping, Optional
from urllib.parse import quote_plus

import httpx

from ..errors import (
    DataIntegrityError,
    DataverseMCPError,
    RemoteError,
    RequestConstructionError,
    TransportError,
)
from ..models import QueryOptions

# Trailing "(...)" segment of an OData-EntityId URL
_ENTITY_ID_KEY = re.compile(r"\(([^()]+)\)\s*$")


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def build_query_string(options: QueryOptions) -> str:
    """
    Build an OData system query string.

    Parameters are emitted in the fixed order $select, $filter, $orderby, $top,
    $skip, $expand, $count and only when set. $count is emitted as "true" only
    when truthy.

    Returns:
        "?$select=...&..." or "" when no option is set
    """
    params = []
    if _is_present(options.select):
        params.append(("$select", options.select))
    if _is_present(options.filter):
        params.append(("$filter", options.filter))
    if _is_present(options.orderby):
        params.append(("$orderby", options.orderby))
    if options.top is not None:
        params.append(("$top", str(options.top)))
    if options.skip is not None:
        params.append(("$skip", str(options.skip)))
    if _is_present(options.expand):
        params.append(("$expand", options.expand))
    if options.count:
        params.append(("$count", "true"))

    if not params:
        return ""
    return "?" + "&".join(f"{name}={quote_plus(str(value))}" for name, value in params)


def extract_record_id(
    table: str, headers: Mapping[str, str], body: Optional[Mapping[str, Any]]
) -> str:
    """
    Resolve the identifier of a newly created record.

    Looked up in order: the OData-EntityId header (GUID taken from its trailing
    "(...)" segment), the "<table without trailing s>id" field, the "id" field.

    Raises:
        DataIntegrityError: If none of them is present
    """
    entity_id = headers.get("OData-EntityId")
    if entity_id:
        match = _ENTITY_ID_KEY.search(entity_id)
        return match.group(1) if match else entity_id

    if body:
        singular = table[:-1] if table.endswith("s") else table
        for field in (f"{singular}id", "id"):
            value = body.get(field)
            if value:
                return str(value)

    raise DataIntegrityError(
        f"Could not extract record ID from create response for table '{table}'"
    )


def remote_error_from_response(response: httpx.Response) -> RemoteError:
    """Map a non-2xx response to RemoteError using the OData error envelope when present"""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        inner = error.get("innererror")
        inner_message = inner.get("message") if isinstance(inner, dict) else None
        return RemoteError(
            str(error.get("message") or response.reason_phrase or f"HTTP {status}"),
            status_code=status,
            code=error.get("code"),
            inner_message=inner_message,
        )

    text = response.text.strip() if response.content else ""
    return RemoteError(text or response.reason_phrase or f"HTTP {status}", status_code=status)


def classify_error(error: Exception) -> DataverseMCPError:
    """
    Classify a failed exchange.

    - response received with non-2xx status -> RemoteError with status/code/message
    - request sent but no response -> TransportError
    - request could not be built or sent -> RequestConstructionError
    """
    if isinstance(error, DataverseMCPError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        return remote_error_from_response(error.response)

    # Raised before anything reaches the wire
    if isinstance(error, (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError)):
        return RequestConstructionError(f"Could not build request: {error}")

    if isinstance(error, httpx.TimeoutException):
        return TransportError(f"No response received from Dataverse: request timed out ({error})")

    if isinstance(error, httpx.TransportError):
        detail = str(error) or type(error).__name__
        return TransportError(f"No response received from Dataverse: {detail}")

    return RequestConstructionError(f"Could not build request: {error}")
