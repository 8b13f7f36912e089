"""
Protocol - Response Decoder

Rebuilds typed search results from the service's flat, prefix-keyed JSON.

A result entry carries ``docid`` and ``query_relevance_score`` plus any of
``snippet_<field>``, ``variable_<index>``, ``category_<name>`` and bare
``<field>`` keys. Attachments are created only when the entry holds at
least one key of their class, so "not requested" stays None.
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from indextank.errors import ProtocolError
from indextank.protocol.classifier import Operation, UNEXPECTED_MESSAGE
from indextank.protocol.query import Query, RequestedAttachments
from indextank.schemas.search import ResultDocument, SearchResult


SNIPPET = "snippet"
VARIABLE = "variable"
CATEGORY = "category"
FIELD = "field"

PREFIXED_CLASSES = (
    ("snippet_", SNIPPET),
    ("variable_", VARIABLE),
    ("category_", CATEGORY),
)

RESERVED_KEYS = frozenset({"docid", "query_relevance_score"})
REQUIRED_KEYS = ("matches", "search_time", "query")


def parse_json(response: httpx.Response, operation: Operation) -> Any:
    """Decode a response body, treating invalid JSON as a protocol failure."""
    try:
        return response.json()
    except ValueError as exc:
        raise ProtocolError(
            UNEXPECTED_MESSAGE, response.status_code, operation
        ) from exc


def _malformed(detail: str) -> ProtocolError:
    return ProtocolError(
        f"The search response is malformed: {detail}",
        operation=Operation.SEARCH,
    )


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value)


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, bool) or value is None:
        raise _malformed(f"{what} is not a number")
    try:
        return float(value if isinstance(value, (int, float)) else str(value).strip())
    except ValueError as exc:
        raise _malformed(f"{what} is not a number") from exc


def _class_requested(kind: str, name: str, requested: RequestedAttachments) -> bool:
    if kind == SNIPPET:
        return name in requested.snippet_fields
    if kind == VARIABLE:
        return requested.variables
    return requested.categories


def classify_key(
    key: str,
    requested: Optional[RequestedAttachments] = None,
) -> Tuple[str, str]:
    """
    Assign a result key to its attachment class.

    Args:
        key: Property name from a result entry
        requested: Attachments the issuing query asked for, if known

    Returns:
        ``(kind, name)`` with the class prefix removed from ``name``
    """
    lowered = key.lower()
    for prefix, kind in PREFIXED_CLASSES:
        if lowered.startswith(prefix):
            name = key[len(prefix):]
            # A fetched field whose own name carries a class prefix
            if (
                requested is not None
                and key in requested.fetch_fields
                and not _class_requested(kind, name, requested)
            ):
                return FIELD, key
            return kind, name
    return FIELD, key


def _decode_variables(raw: List[Tuple[str, Any]], document_id: str) -> List[float]:
    values = [0.0] * len(raw)
    for name, value in raw:
        try:
            index = int(name)
        except ValueError as exc:
            raise _malformed(f"variable_{name} of {document_id} has no index") from exc
        if not 0 <= index < len(values):
            raise _malformed(f"variable_{name} of {document_id} is out of sequence")
        values[index] = _as_float(value, f"variable_{name} of {document_id}")
    return values


def decode_result_document(
    entry: Dict[str, Any],
    requested: Optional[RequestedAttachments] = None,
) -> ResultDocument:
    """Demultiplex one result entry into a ResultDocument."""
    if not isinstance(entry, dict) or "docid" not in entry:
        raise _malformed("result entry without docid")

    document_id = _as_text(entry["docid"])
    snippets: Optional[Dict[str, str]] = None
    categories: Optional[Dict[str, str]] = None
    fields: Optional[Dict[str, str]] = None
    raw_variables: List[Tuple[str, Any]] = []

    for key, value in entry.items():
        if key in RESERVED_KEYS:
            continue

        kind, name = classify_key(key, requested)
        if kind == SNIPPET:
            if snippets is None:
                snippets = {}
            snippets[name] = _as_text(value)
        elif kind == CATEGORY:
            if categories is None:
                categories = {}
            categories[name] = _as_text(value)
        elif kind == VARIABLE:
            raw_variables.append((name, value))
        else:
            if fields is None:
                fields = {}
            fields[name] = _as_text(value)

    return ResultDocument(
        document_id=document_id,
        query_relevance_score=_as_float(
            entry.get("query_relevance_score", 0), f"score of {document_id}"
        ),
        snippets=snippets,
        categories=categories,
        fields=fields,
        variables=_decode_variables(raw_variables, document_id) if raw_variables else None,
    )


def decode_search_result(payload: Any, query: Optional[Query] = None) -> SearchResult:
    """
    Decode a search response body.

    Args:
        payload: Parsed JSON body
        query: The query that produced it, used to disambiguate keys

    Returns:
        SearchResult

    Raises:
        ProtocolError: if the body is not a well-formed search response
    """
    if not isinstance(payload, dict):
        raise _malformed("body is not an object")

    missing = [key for key in REQUIRED_KEYS if key not in payload]
    if missing:
        raise _malformed(f"missing {', '.join(missing)}")

    entries = payload.get("results") or []
    if not isinstance(entries, list):
        raise _malformed("results is not a list")

    requested = query.requested_attachments() if query is not None else None

    try:
        matches = int(payload["matches"])
        search_time = Decimal(str(payload["search_time"]))
    except (TypeError, ValueError, InvalidOperation) as exc:
        raise _malformed("matches or search_time is not a number") from exc

    documents = [decode_result_document(entry, requested) for entry in entries]

    try:
        return SearchResult(
            matches=matches,
            search_time=search_time,
            query_text=_as_text(payload["query"]),
            did_you_mean=payload.get("didyoumean"),
            result_documents=documents,
            facets=payload.get("facets"),
        )
    except ValidationError as exc:
        raise _malformed("search result fields are malformed") from exc
