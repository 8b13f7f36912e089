"""
IndexTank Client

Asynchronous client for the IndexTank hosted search API.
"""

from indextank.errors import (
    ApiError,
    ErrorKind,
    IndexTankError,
    InvalidArgumentError,
    OutOfRangeError,
    ProtocolError,
    SearchTimeoutError,
)
from indextank.protocol import Operation, Query
from indextank.schemas import (
    BatchDeleteResult,
    BatchDeleteResultCollection,
    BatchIndexResult,
    BatchIndexResultCollection,
    Document,
    IndexInfo,
    ResultDocument,
    SearchResult,
)
from indextank.services import Index, IndexTankClient

__all__ = [
    "ApiError",
    "ErrorKind",
    "IndexTankError",
    "InvalidArgumentError",
    "OutOfRangeError",
    "ProtocolError",
    "SearchTimeoutError",
    "Operation",
    "Query",
    "BatchDeleteResult",
    "BatchDeleteResultCollection",
    "BatchIndexResult",
    "BatchIndexResultCollection",
    "Document",
    "IndexInfo",
    "ResultDocument",
    "SearchResult",
    "Index",
    "IndexTankClient",
]
