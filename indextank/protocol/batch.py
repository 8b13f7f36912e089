"""
Protocol - Batch Correlator

Aligns the positional batch add/delete responses with the submitted items.
The service returns one ``{added|deleted, error}`` entry per item with no
identifying key, so correlation relies on submission order alone.
"""

from typing import Any, Iterable, List, Optional, Sequence, TypeVar

from pydantic import ValidationError

from indextank.errors import InvalidArgumentError, ProtocolError
from indextank.protocol.classifier import Operation
from indextank.schemas.batch import (
    BatchDeleteResult,
    BatchDeleteResultCollection,
    BatchIndexResult,
    BatchIndexResultCollection,
)
from indextank.schemas.document import Document


T = TypeVar("T")


def require_items(items: Optional[Iterable[T]], argument: str) -> List[T]:
    """
    Materialize a batch, rejecting a missing or empty one before any request.

    Args:
        items: Submitted documents or identifiers
        argument: Name used in the error message

    Returns:
        The items as a list, in submission order
    """
    if items is None:
        raise InvalidArgumentError(f"The list of {argument} is null.")
    if isinstance(items, (str, bytes)):
        raise InvalidArgumentError(f"The list of {argument} must not be a single string.")

    materialized = list(items)
    if not materialized:
        raise InvalidArgumentError(f"The list of {argument} is empty.")
    return materialized


def _check_shape(payload: Any, expected: int, operation: Operation) -> List[Any]:
    if not isinstance(payload, list):
        raise ProtocolError(
            "The batch response is not a list of results.",
            operation=operation,
        )
    if len(payload) != expected:
        raise ProtocolError(
            f"The batch response holds {len(payload)} results for {expected} submitted items.",
            operation=operation,
        )
    return payload


def correlate_index_results(
    documents: Sequence[Document],
    payload: Any,
) -> BatchIndexResultCollection:
    """Stamp each positional add outcome with the document that produced it."""
    entries = _check_shape(payload, len(documents), Operation.ADD_DOCUMENTS)

    results = BatchIndexResultCollection()
    try:
        for document, entry in zip(documents, entries):
            result = BatchIndexResult.model_validate(entry)
            result.document = document
            results.append(result)
    except ValidationError as exc:
        raise ProtocolError(
            "The batch response holds a malformed result.",
            operation=Operation.ADD_DOCUMENTS,
        ) from exc
    return results


def correlate_delete_results(
    document_ids: Sequence[str],
    payload: Any,
) -> BatchDeleteResultCollection:
    """Stamp each positional delete outcome with the identifier that produced it."""
    entries = _check_shape(payload, len(document_ids), Operation.DELETE_DOCUMENTS)

    results = BatchDeleteResultCollection()
    try:
        for document_id, entry in zip(document_ids, entries):
            result = BatchDeleteResult.model_validate(entry)
            result.document_id = document_id
            results.append(result)
    except ValidationError as exc:
        raise ProtocolError(
            "The batch response holds a malformed result.",
            operation=Operation.DELETE_DOCUMENTS,
        ) from exc
    return results
