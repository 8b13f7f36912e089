"""
Services - Index Service

Document, scoring function and search operations on a single index.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from indextank.errors import InvalidArgumentError, OutOfRangeError, ProtocolError
from indextank.protocol.batch import (
    correlate_delete_results,
    correlate_index_results,
    require_items,
)
from indextank.protocol.classifier import Operation, UNEXPECTED_MESSAGE
from indextank.protocol.decoder import decode_search_result, parse_json
from indextank.protocol.query import Query
from indextank.protocol.timeout import run_with_timeout
from indextank.protocol.transport import (
    CATEGORIES_PATH,
    DOCS_PATH,
    FUNCTIONS_PATH,
    INDEXES_PATH,
    PROMOTE_PATH,
    SEARCH_PATH,
    VARIABLES_PATH,
    Transport,
)
from indextank.schemas.batch import BatchDeleteResultCollection, BatchIndexResultCollection
from indextank.schemas.document import Document, MAX_FIELD_BYTES
from indextank.schemas.index import IndexInfo
from indextank.schemas.search import SearchResult
from indextank.services.cache_service import CacheService


logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], description: str) -> str:
    if value is None:
        raise InvalidArgumentError(f"The {description} is null.")
    if not value.strip():
        raise InvalidArgumentError(f"The {description} is empty.")
    return value


def _require_function_number(function_number: int) -> int:
    if function_number < 0:
        raise OutOfRangeError("The function number is less than zero.")
    return int(function_number)


def index_path(index_name: str) -> str:
    return f"{INDEXES_PATH}/{index_name}"


def parse_index_info(payload, operation: Operation, check_status: bool = True) -> IndexInfo:
    """
    Validate index metadata, treating an unusable body as a protocol failure.

    Args:
        payload: Parsed JSON metadata of one index
        operation: Operation that fetched it
        check_status: Reject an index the service reports in error
    """
    try:
        info = IndexInfo.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(UNEXPECTED_MESSAGE, operation=operation) from exc

    if check_status and info.status == "ERROR":
        raise ProtocolError(UNEXPECTED_MESSAGE, operation=operation)
    return info


async def fetch_index_info(
    transport: Transport,
    index_name: str,
    cache: Optional[CacheService] = None,
) -> IndexInfo:
    """
    Read index metadata, served from cache when available.

    Only started indexes are cached so that callers polling for startup
    always see a fresh status.
    """
    key = CacheService.index_key(index_name)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    response = await transport.execute("GET", index_path(index_name), Operation.GET_INDEX)
    info = parse_index_info(parse_json(response, Operation.GET_INDEX), Operation.GET_INDEX)

    if cache is not None and info.started:
        cache.set(key, info)
    return info


class Index:
    """A named, server-side collection of searchable documents."""

    def __init__(
        self,
        name: str,
        transport: Transport,
        info: Optional[IndexInfo] = None,
        cache: Optional[CacheService] = None,
    ):
        self.name = name
        self.transport = transport
        self.info = info or IndexInfo()
        self.cache = cache
        self.settings = transport.settings

    def __repr__(self) -> str:
        return f"Index({self.name!r}, started={self.info.started})"

    @property
    def path(self) -> str:
        return index_path(self.name)

    @property
    def is_started(self) -> bool:
        return self.info.started

    @property
    def size(self) -> int:
        return self.info.size

    @property
    def code(self) -> Optional[str]:
        return self.info.code

    @property
    def creation_time(self) -> Optional[datetime]:
        return self.info.creation_time

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.invalidate_index(self.name)

    async def refresh(self) -> "Index":
        """Re-read the index metadata from the service."""
        self._invalidate()
        self.info = await fetch_index_info(self.transport, self.name, self.cache)
        return self

    async def update(self, public_search: bool, did_you_mean: bool) -> "Index":
        """
        Enable or disable the public search API and search suggestions.

        Args:
            public_search: Enable the public search API
            did_you_mean: Enable "did you mean" suggestions

        Returns:
            The index with refreshed metadata
        """
        await self.transport.execute(
            "PUT",
            self.path,
            Operation.UPDATE_INDEX,
            payload={"public_search": public_search, "did_you_mean": did_you_mean},
        )
        logger.info(f"Updated index {self.name}")
        return await self.refresh()

    # Documents

    async def add_document(self, document: Document) -> bool:
        """
        Add (or replace) a single document.

        Returns:
            True if the service accepted the document
        """
        if document is None:
            raise InvalidArgumentError("The document is null.")
        if not document.fields:
            raise InvalidArgumentError(
                "The document has no fields. A document must have at least one "
                "field before adding it to an index."
            )

        size = document.content_size()
        if size > MAX_FIELD_BYTES:
            raise InvalidArgumentError(
                f"The combined size of all field values is {size} bytes. "
                f"The combined size may not exceed {MAX_FIELD_BYTES} bytes."
            )

        response = await self.transport.execute(
            "PUT",
            f"{self.path}{DOCS_PATH}",
            Operation.ADD_DOCUMENT,
            payload=document.to_payload(),
        )
        return response.status_code == 200

    async def add_documents(self, documents: Iterable[Document]) -> BatchIndexResultCollection:
        """
        Add several documents in one request.

        Per-document failures do not raise; they are reported on the
        matching result and collected by ``failed_documents()``.

        Args:
            documents: Documents to add

        Returns:
            One result per document, in submission order
        """
        batch = require_items(documents, "documents")
        if any(document is None for document in batch):
            raise InvalidArgumentError("One or more of the documents are null.")

        response = await self.transport.execute(
            "PUT",
            f"{self.path}{DOCS_PATH}",
            Operation.ADD_DOCUMENTS,
            payload=[document.to_payload() for document in batch],
        )
        results = correlate_index_results(batch, parse_json(response, Operation.ADD_DOCUMENTS))

        failed = len(results.failed_documents())
        if failed:
            logger.warning(f"{failed} of {len(batch)} documents were not added to {self.name}")
        return results

    async def delete_document(self, document_id: str) -> bool:
        _require_text(document_id, "document identifier")
        response = await self.transport.execute(
            "DELETE",
            f"{self.path}{DOCS_PATH}",
            Operation.DELETE_DOCUMENT,
            params=[("docid", document_id)],
        )
        return response.status_code == 200

    async def delete_documents(self, document_ids: Iterable[str]) -> BatchDeleteResultCollection:
        """
        Delete several documents by identifier in one request.

        Args:
            document_ids: Identifiers of the documents to delete

        Returns:
            One result per identifier, in submission order
        """
        batch = require_items(document_ids, "document identifiers")
        for document_id in batch:
            _require_text(document_id, "document identifier")

        response = await self.transport.execute(
            "DELETE",
            f"{self.path}{DOCS_PATH}",
            Operation.DELETE_DOCUMENTS,
            params=[("docid", document_id) for document_id in batch],
        )
        return correlate_delete_results(batch, parse_json(response, Operation.DELETE_DOCUMENTS))

    async def delete_by_query(self, query: Query) -> bool:
        """Delete every document matching ``query``."""
        if query is None:
            raise InvalidArgumentError("The query is null.")
        if query.has_parameter("len"):
            raise InvalidArgumentError(
                "Calling take on a query used for deleting is not supported."
            )

        response = await self.transport.execute(
            "DELETE",
            f"{self.path}{SEARCH_PATH}",
            Operation.DELETE_BY_QUERY,
            params=query.parameters,
        )
        return response.status_code == 200

    async def promote_document(self, document_id: str, query_text: str) -> bool:
        """Pin a document to the top of the results for ``query_text``."""
        _require_text(document_id, "document identifier")
        _require_text(query_text, "query text")

        response = await self.transport.execute(
            "PUT",
            f"{self.path}{PROMOTE_PATH}",
            Operation.PROMOTE_DOCUMENT,
            payload={"docid": document_id, "query": query_text},
        )
        return response.status_code == 200

    # Variables and categories

    async def update_variables(self, document_id: str, variables: Dict[int, float]) -> bool:
        """
        Update variables of an existing document without resending it.

        Args:
            document_id: Document to update
            variables: Variable number to new value

        Returns:
            True if the update succeeded
        """
        _require_text(document_id, "document identifier")
        if variables is None:
            raise InvalidArgumentError("The list of variables is null.")
        if not variables:
            raise InvalidArgumentError("The list of variables is empty.")

        document = Document(document_id)
        for variable_number, value in variables.items():
            document.add_variable(variable_number, value)

        response = await self.transport.execute(
            "PUT",
            f"{self.path}{VARIABLES_PATH}",
            Operation.UPDATE_VARIABLES,
            payload=document.to_payload(),
        )
        return response.status_code == 200

    async def update_variable(self, document_id: str, variable_number: int, value: float) -> bool:
        return await self.update_variables(document_id, {variable_number: value})

    async def update_categories(self, document_id: str, categories: Dict[str, str]) -> bool:
        """Update categories of an existing document without resending it."""
        _require_text(document_id, "document identifier")
        if categories is None:
            raise InvalidArgumentError("The list of categories is null.")
        if not categories:
            raise InvalidArgumentError("The list of categories is empty.")

        document = Document(document_id)
        for category_name, value in categories.items():
            document.add_category(category_name, value)

        response = await self.transport.execute(
            "PUT",
            f"{self.path}{CATEGORIES_PATH}",
            Operation.UPDATE_CATEGORIES,
            payload=document.to_payload(),
        )
        return response.status_code == 200

    async def update_category(self, document_id: str, category_name: str, value: str) -> bool:
        _require_text(category_name, "category name")
        return await self.update_categories(document_id, {category_name: value})

    # Scoring functions

    async def get_functions(self) -> Dict[int, str]:
        """
        Scoring functions of the index.

        Returns:
            Function number to definition
        """
        key = CacheService.functions_key(self.name)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return dict(cached)

        response = await self.transport.execute(
            "GET", f"{self.path}{FUNCTIONS_PATH}", Operation.LIST_FUNCTIONS
        )
        payload = parse_json(response, Operation.LIST_FUNCTIONS)
        try:
            functions = {int(number): str(definition) for number, definition in payload.items()}
        except (AttributeError, TypeError, ValueError) as exc:
            raise ProtocolError(
                UNEXPECTED_MESSAGE, response.status_code, Operation.LIST_FUNCTIONS
            ) from exc

        if self.cache is not None:
            self.cache.set(key, functions)
        return dict(functions)

    async def add_function(self, function_number: int, definition: str) -> bool:
        """
        Store a scoring function formula at ``function_number``.

        Raises:
            ApiError: if the service rejects the formula syntax
        """
        number = _require_function_number(function_number)
        _require_text(definition, "function definition")

        response = await self.transport.execute(
            "PUT",
            f"{self.path}{FUNCTIONS_PATH}/{number}",
            Operation.ADD_FUNCTION,
            payload={"definition": definition},
        )
        if self.cache is not None:
            self.cache.delete(CacheService.functions_key(self.name))
        return response.status_code == 200

    async def delete_function(self, function_number: int) -> bool:
        number = _require_function_number(function_number)

        response = await self.transport.execute(
            "DELETE",
            f"{self.path}{FUNCTIONS_PATH}/{number}",
            Operation.DELETE_FUNCTION,
        )
        if self.cache is not None:
            self.cache.delete(CacheService.functions_key(self.name))
        return response.status_code == 200

    # Search

    async def search(self, query: Union[Query, str]) -> SearchResult:
        """
        Run a query against the index.

        Args:
            query: A Query, or plain search text

        Returns:
            SearchResult

        Raises:
            OutOfRangeError: if skip + take exceeds the service ceiling
        """
        if query is None:
            raise InvalidArgumentError("The query is null.")
        if isinstance(query, str):
            query = Query(query)

        span = query.paging_span()
        ceiling = self.settings.indextank.max_paging_span
        if span > ceiling:
            raise OutOfRangeError(
                f"The sum of the skip and take values of the query ({span}) exceeds {ceiling}."
            )

        response = await self.transport.execute(
            "GET",
            f"{self.path}{SEARCH_PATH}",
            Operation.SEARCH,
            params=query.parameters,
        )
        result = decode_search_result(parse_json(response, Operation.SEARCH), query)
        logger.debug(f"Search on {self.name} matched {result.matches} documents")
        return result

    async def search_fields(self, query: Query, *fields: str) -> SearchResult:
        """
        Search the query text across several fields without field syntax.

        Same as searching ``field1:text OR field2:text ...``; blank field
        names are skipped. The caller's query is left unchanged.
        """
        if query is None:
            raise InvalidArgumentError("The query is null.")
        if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
            fields = tuple(fields[0])
        if any(field is None for field in fields):
            raise InvalidArgumentError("One or more of the fields to search are null.")

        names: List[str] = [field for field in fields if field.strip()]
        if not names:
            raise InvalidArgumentError("The fields to search are empty.")

        text = " OR ".join(f"{name}:{query.text}" for name in names)
        return await self.search(query.with_text(text))

    async def search_with_timeout(self, query: Union[Query, str], timeout_ms: float) -> SearchResult:
        """
        Run a query, giving up after ``timeout_ms`` milliseconds.

        Raises:
            InvalidArgumentError: if timeout_ms is not positive (nothing is sent)
            SearchTimeoutError: if the service does not answer in time
        """
        return await run_with_timeout(lambda: self.search(query), timeout_ms)
