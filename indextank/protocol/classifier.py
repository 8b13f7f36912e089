"""
Protocol - Error Classifier

Maps transport outcomes and HTTP status codes, together with the operation
that produced them, to the client's error taxonomy.
"""

import logging
from enum import Enum
from typing import Optional

import httpx

from indextank.errors import ApiError, IndexTankError, ProtocolError


logger = logging.getLogger(__name__)

SUCCESS_CODES = frozenset({200, 201, 204})


class Operation(str, Enum):
    """Client operations, passed explicitly by every call site."""
    CREATE_INDEX = "create_index"
    UPDATE_INDEX = "update_index"
    GET_INDEX = "get_index"
    LIST_INDEXES = "list_indexes"
    DELETE_INDEX = "delete_index"
    ADD_DOCUMENT = "add_document"
    ADD_DOCUMENTS = "add_documents"
    DELETE_DOCUMENT = "delete_document"
    DELETE_DOCUMENTS = "delete_documents"
    DELETE_BY_QUERY = "delete_by_query"
    PROMOTE_DOCUMENT = "promote_document"
    LIST_FUNCTIONS = "list_functions"
    ADD_FUNCTION = "add_function"
    DELETE_FUNCTION = "delete_function"
    UPDATE_VARIABLES = "update_variables"
    UPDATE_CATEGORIES = "update_categories"
    SEARCH = "search"


# 409 on the index PUT endpoint means the account is at capacity
INDEX_CAPACITY_OPERATIONS = frozenset({Operation.CREATE_INDEX, Operation.UPDATE_INDEX})

BAD_REQUEST_MESSAGES = {
    Operation.ADD_FUNCTION: "The function definition is malformed. Check your syntax.",
    Operation.ADD_DOCUMENT: (
        "Invalid argument. Make sure you have not specified a variable number "
        "that exceeds the number that is allowed for the current index."
    ),
    Operation.UPDATE_VARIABLES: (
        "Invalid argument. Make sure you have not specified a variable number "
        "that exceeds the number that is allowed for the current index."
    ),
    Operation.SEARCH: "The query is invalid.",
}

DEFAULT_BAD_REQUEST_MESSAGE = "Invalid or missing argument."
UNEXPECTED_MESSAGE = "An unexpected error occurred."


def is_success(status_code: int) -> bool:
    return status_code in SUCCESS_CODES


def error_for_status(status_code: int, operation: Operation) -> Optional[IndexTankError]:
    """
    Build the error for a non-success status.

    Args:
        status_code: HTTP status returned by the service
        operation: Operation that issued the request

    Returns:
        The classified error, or None for a success status
    """
    if is_success(status_code):
        return None

    if status_code == 401:
        return ProtocolError("Authorization failed.", status_code, operation)

    if status_code == 404:
        return ApiError("The index was not found.", status_code, operation)

    if status_code == 409:
        if operation in INDEX_CAPACITY_OPERATIONS:
            return ApiError(
                "There are too many indexes for this account.",
                status_code,
                operation,
            )
        return ApiError(
            "The index is not yet initialized. "
            "Make sure the index has started before accessing it.",
            status_code,
            operation,
        )

    if status_code == 503:
        return ApiError("The IndexTank service is unavailable.", status_code, operation)

    if status_code == 400:
        message = BAD_REQUEST_MESSAGES.get(operation, DEFAULT_BAD_REQUEST_MESSAGE)
        return ApiError(message, status_code, operation)

    return ProtocolError(UNEXPECTED_MESSAGE, status_code, operation)


def classify_response(response: httpx.Response, operation: Operation) -> httpx.Response:
    """
    Raise the classified error for a failed response.

    Returns:
        The response unchanged when its status is a success
    """
    error = error_for_status(response.status_code, operation)
    if error is None:
        return response

    logger.warning(
        f"{operation.value} failed with HTTP {response.status_code}: {error.message}"
    )
    raise error


def classify_transport_error(exc: Exception, operation: Operation) -> ProtocolError:
    """Wrap a transport failure (no usable response) in a ProtocolError."""
    if isinstance(exc, httpx.TimeoutException):
        message = "The request timed out."
    elif isinstance(exc, httpx.ConnectError):
        message = f"The server could not be reached: {exc}"
    elif isinstance(exc, httpx.HTTPError):
        message = f"The server did not return a response: {exc}"
    else:
        message = str(exc) or UNEXPECTED_MESSAGE

    status_code = None
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code

    logger.warning(f"{operation.value} transport failure: {message}")
    error = ProtocolError(message, status_code, operation)
    error.__cause__ = exc
    return error
