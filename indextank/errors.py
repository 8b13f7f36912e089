"""
IndexTank Client - Errors

Exception taxonomy surfaced by every client operation.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from indextank.protocol.classifier import Operation


class ErrorKind(str, Enum):
    """The fixed set of failure kinds."""
    INVALID_ARGUMENT = "invalid_argument"
    OUT_OF_RANGE = "out_of_range"
    API_ERROR = "api_error"
    PROTOCOL_ERROR = "protocol_error"
    TIMEOUT = "timeout"


class IndexTankError(Exception):
    """
    Base class for all client errors.

    Carries the HTTP status code and the operation that produced the error
    when they are known. The underlying transport exception, if any, is
    chained as ``__cause__`` and also exposed as ``cause``.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        operation: Optional["Operation"] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.operation = operation

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__


class InvalidArgumentError(IndexTankError, ValueError):
    """A client-side precondition was violated; nothing was sent."""
    kind = ErrorKind.INVALID_ARGUMENT


class OutOfRangeError(IndexTankError, ValueError):
    """A numeric or paging bound was exceeded."""
    kind = ErrorKind.OUT_OF_RANGE


class ApiError(IndexTankError):
    """The service understood the request but rejected it."""
    kind = ErrorKind.API_ERROR


class ProtocolError(IndexTankError):
    """Transport, authorization or unexpected-response failure."""
    kind = ErrorKind.PROTOCOL_ERROR


class SearchTimeoutError(IndexTankError, TimeoutError):
    """The caller-supplied deadline elapsed before the service answered."""
    kind = ErrorKind.TIMEOUT
