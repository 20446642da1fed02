"""
Tests for OData query construction, identifier extraction and error classification
"""

import httpx
import pytest

from dataverse_mcp.client.query import build_query_string, classify_error, extract_record_id
from dataverse_mcp.errors import (
    DataIntegrityError,
    RemoteError,
    RequestConstructionError,
    TransportError,
)
from dataverse_mcp.models import QueryOptions

CONTACT_ID = "11111111-1111-1111-1111-111111111111"


@pytest.mark.unit
class TestBuildQueryString:
    def test_select_and_top(self):
        """Test select and top produce an encoded query string"""
        assert build_query_string(QueryOptions(select="a,b", top=5)) == "?$select=a%2Cb&$top=5"

    def test_empty_options_yield_empty_string(self):
        """Test empty options produce no query string"""
        assert build_query_string(QueryOptions()) == ""

    def test_fixed_parameter_order(self):
        """Test parameters always appear in the same order"""
        options = QueryOptions(
            count=True,
            expand="parentcustomerid_account",
            skip=10,
            top=5,
            orderby="createdon desc",
            filter="statecode eq 0",
            select="fullname",
        )

        query = build_query_string(options)

        names = [part.split("=", 1)[0] for part in query.lstrip("?").split("&")]
        assert names == ["$select", "$filter", "$orderby", "$top", "$skip", "$expand", "$count"]

    def test_values_are_url_encoded(self):
        """Test parameter values are URL encoded"""
        query = build_query_string(QueryOptions(filter="firstname eq 'John'"))

        assert query == "?$filter=firstname+eq+%27John%27"

    def test_count_only_when_true(self):
        """Test count is only emitted when requested"""
        assert build_query_string(QueryOptions(count=False)) == ""
        assert build_query_string(QueryOptions(count=True)) == "?$count=true"

    def test_zero_skip_is_emitted(self):
        """Test a zero skip is still emitted"""
        assert build_query_string(QueryOptions(skip=0)) == "?$skip=0"

    def test_blank_strings_are_omitted(self):
        """Test blank option strings are omitted"""
        assert build_query_string(QueryOptions(select="", expand="")) == ""


@pytest.mark.unit
class TestExtractRecordId:
    def test_entity_id_header(self):
        """Test the GUID is taken from the OData-EntityId header"""
        headers = httpx.Headers(
            {"OData-EntityId": f"https://contoso.crm.dynamics.com/api/data/v9.2/contacts({CONTACT_ID})"}
        )

        assert extract_record_id("contacts", headers, None) == CONTACT_ID

    def test_entity_id_header_lookup_is_case_insensitive(self):
        """Test the header lookup ignores case"""
        headers = httpx.Headers({"odata-entityid": f"contacts({CONTACT_ID})"})

        assert extract_record_id("contacts", headers, None) == CONTACT_ID

    def test_header_takes_priority_over_body(self):
        """Test the header wins over identifiers in the body"""
        headers = httpx.Headers({"OData-EntityId": f"contacts({CONTACT_ID})"})
        body = {"contactid": "22222222-2222-2222-2222-222222222222"}

        assert extract_record_id("contacts", headers, body) == CONTACT_ID

    def test_singular_id_field(self):
        """Test the singular table id field is used"""
        body = {"contactid": CONTACT_ID, "id": "other"}

        assert extract_record_id("contacts", httpx.Headers(), body) == CONTACT_ID

    def test_bare_id_field(self):
        """Test the plain id field is used last"""
        assert extract_record_id("contacts", httpx.Headers(), {"id": CONTACT_ID}) == CONTACT_ID

    def test_missing_identifier(self):
        """Test a missing identifier raises DataIntegrityError"""
        with pytest.raises(DataIntegrityError, match="Could not extract record ID"):
            extract_record_id("contacts", httpx.Headers(), {"firstname": "John"})


def _status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://contoso.crm.dynamics.com/api/data/v9.2/contacts")
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("failed", request=request, response=response)


@pytest.mark.unit
class TestClassifyError:
    def test_error_envelope(self):
        """Test the OData error envelope is parsed"""
        error = classify_error(
            _status_error(404, json={"error": {"code": "0x1", "message": "Not found"}})
        )

        assert isinstance(error, RemoteError)
        assert (error.status_code, error.code, error.message) == (404, "0x1", "Not found")
        assert error.inner_message is None

    def test_inner_error_message(self):
        """Test the inner error message is kept"""
        error = classify_error(
            _status_error(
                400,
                json={
                    "error": {
                        "code": "0x80040203",
                        "message": "Invalid property",
                        "innererror": {"message": "Property 'foo' does not exist", "type": "x"},
                    }
                },
            )
        )

        assert error.inner_message == "Property 'foo' does not exist"
        assert "Property 'foo' does not exist" in str(error)

    def test_response_without_envelope(self):
        """Test a response without an error envelope"""
        error = classify_error(_status_error(502, text="Bad gateway from proxy"))

        assert error.status_code == 502
        assert error.code is None
        assert error.message == "Bad gateway from proxy"

    def test_empty_error_body_uses_reason_phrase(self):
        """Test an empty error body falls back to the reason phrase"""
        error = classify_error(_status_error(503))

        assert error.message == "Service Unavailable"

    def test_timeout_is_transport_error(self):
        """Test timeouts are classified as transport errors"""
        error = classify_error(httpx.ReadTimeout("timed out"))

        assert isinstance(error, TransportError)
        assert error.status_code is None
        assert "timed out" in error.message

    def test_connection_failure_is_transport_error(self):
        """Test connection failures are classified as transport errors"""
        error = classify_error(httpx.ConnectError("connection refused"))

        assert isinstance(error, TransportError)
        assert "connection refused" in error.message

    def test_unsupported_protocol_is_construction_error(self):
        """Test unsupported protocols are classified as construction errors"""
        error = classify_error(httpx.UnsupportedProtocol("Request URL has an unsupported protocol"))

        assert isinstance(error, RequestConstructionError)

    def test_unserialisable_body_is_construction_error(self):
        """Test a body that cannot be serialised is a construction error"""
        error = classify_error(TypeError("Object of type set is not JSON serializable"))

        assert isinstance(error, RequestConstructionError)
        assert "not JSON serializable" in str(error)
