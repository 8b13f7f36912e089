"""
Unit Tests for the Error Classifier
"""

import httpx
import pytest

from indextank.errors import (
    ApiError,
    ErrorKind,
    IndexTankError,
    ProtocolError,
)
from indextank.protocol.classifier import (
    Operation,
    classify_response,
    classify_transport_error,
    error_for_status,
)


class TestErrorForStatus:
    """Tests for mapping status codes to errors."""

    @pytest.mark.parametrize("status", [200, 201, 204])
    def test_success_codes(self, status):
        """Test success statuses produce no error."""
        assert error_for_status(status, Operation.SEARCH) is None

    def test_conflict_on_create_is_capacity(self):
        """Test 409 while creating an index reports the index quota."""
        error = error_for_status(409, Operation.CREATE_INDEX)

        assert isinstance(error, ApiError)
        assert error.message == "There are too many indexes for this account."

    def test_conflict_on_update_is_capacity(self):
        """Test 409 on the index PUT used for updates reports the index quota."""
        error = error_for_status(409, Operation.UPDATE_INDEX)

        assert "too many indexes" in error.message

    @pytest.mark.parametrize("operation", [Operation.ADD_DOCUMENT, Operation.SEARCH, Operation.DELETE_DOCUMENTS])
    def test_conflict_elsewhere_is_not_started(self, operation):
        """Test 409 on document and search operations reports an unstarted index."""
        error = error_for_status(409, operation)

        assert isinstance(error, ApiError)
        assert "not yet initialized" in error.message
        assert error.operation is operation

    @pytest.mark.parametrize(
        "operation, fragment",
        [
            (Operation.ADD_FUNCTION, "function definition is malformed"),
            (Operation.ADD_DOCUMENT, "variable number"),
            (Operation.UPDATE_VARIABLES, "variable number"),
            (Operation.SEARCH, "The query is invalid."),
            (Operation.DELETE_DOCUMENT, "Invalid or missing argument."),
        ],
    )
    def test_bad_request_messages(self, operation, fragment):
        """Test 400 messages depend on the operation."""
        error = error_for_status(400, operation)

        assert isinstance(error, ApiError)
        assert fragment in error.message
        assert error.status_code == 400

    @pytest.mark.parametrize(
        "status, error_class, kind",
        [
            (401, ProtocolError, ErrorKind.PROTOCOL_ERROR),
            (404, ApiError, ErrorKind.API_ERROR),
            (503, ApiError, ErrorKind.API_ERROR),
            (500, ProtocolError, ErrorKind.PROTOCOL_ERROR),
            (302, ProtocolError, ErrorKind.PROTOCOL_ERROR),
        ],
    )
    def test_other_statuses(self, status, error_class, kind):
        """Test the remaining statuses map to their fixed kinds."""
        error = error_for_status(status, Operation.GET_INDEX)

        assert isinstance(error, error_class)
        assert error.kind is kind


class TestClassifyResponse:
    """Tests for raising on failed responses."""

    def test_success_passes_through(self):
        """Test a successful response is returned unchanged."""
        response = httpx.Response(201)

        assert classify_response(response, Operation.CREATE_INDEX) is response

    def test_failure_raises(self):
        """Test a failed response raises its classified error."""
        with pytest.raises(ApiError) as exc_info:
            classify_response(httpx.Response(404), Operation.GET_INDEX)

        assert exc_info.value.status_code == 404
        assert isinstance(exc_info.value, IndexTankError)


class TestClassifyTransportError:
    """Tests for wrapping transport failures."""

    def test_connect_error(self):
        """Test a connection failure keeps its cause."""
        cause = httpx.ConnectError("connection refused")

        error = classify_transport_error(cause, Operation.SEARCH)

        assert isinstance(error, ProtocolError)
        assert error.cause is cause
        assert error.status_code is None
        assert "could not be reached" in error.message

    def test_timeout(self):
        """Test a transport timeout is a protocol failure, not a search timeout."""
        error = classify_transport_error(httpx.ReadTimeout("slow"), Operation.SEARCH)

        assert isinstance(error, ProtocolError)
        assert error.message == "The request timed out."
