"""
Schemas - Document

Outgoing document builder for indexing requests.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from indextank.errors import InvalidArgumentError, OutOfRangeError


MAX_DOCUMENT_ID_BYTES = 1024
MAX_FIELD_BYTES = 100_000


class Document:
    """
    A unit of indexed content: an identifier plus fields, categories
    and variables. Builder methods return the document for chaining.
    """

    def __init__(self, document_id: str, text: Optional[str] = None):
        if document_id is None:
            raise InvalidArgumentError("The document identifier is null.")
        if not document_id.strip():
            raise InvalidArgumentError("The document identifier is empty.")
        if len(document_id.encode("utf-8")) > MAX_DOCUMENT_ID_BYTES:
            raise InvalidArgumentError(
                f"The document identifier exceeds {MAX_DOCUMENT_ID_BYTES} bytes."
            )

        self.document_id = document_id
        self.fields: Optional[Dict[str, str]] = None
        self.categories: Optional[Dict[str, str]] = None
        self.variables: Optional[Dict[int, float]] = None

        if text is not None:
            self.add_field("text", text)

    def __repr__(self) -> str:
        return f"Document({self.document_id!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.to_payload() == other.to_payload()

    def add_field(self, field_name: str, text: str) -> "Document":
        if field_name is None or not field_name.strip():
            raise InvalidArgumentError("The field name is empty.")
        if text is None:
            raise InvalidArgumentError("The field value is null.")

        size = len(text.encode("utf-8"))
        if size > MAX_FIELD_BYTES:
            raise OutOfRangeError(
                f"The size of the supplied field text is {size} bytes. "
                f"The field text cannot exceed {MAX_FIELD_BYTES} bytes."
            )

        if self.fields is None:
            self.fields = {}
        self.fields[field_name] = text
        return self

    def add_category(self, category_name: str, value: str) -> "Document":
        if category_name is None or not category_name.strip():
            raise InvalidArgumentError("The category name is empty.")
        if value is None:
            raise InvalidArgumentError("The category value is null.")

        if self.categories is None:
            self.categories = {}
        self.categories[category_name] = value
        return self

    def add_variable(self, variable_number: int, value: float) -> "Document":
        if variable_number < 0:
            raise OutOfRangeError("The variable number is less than zero.")

        if self.variables is None:
            self.variables = {}
        self.variables[int(variable_number)] = float(value)
        return self

    def add_timestamp(self, moment: datetime) -> "Document":
        """Store ``moment`` as whole seconds since the epoch in the ``timestamp`` field."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        seconds = round(moment.timestamp())
        if not -(2 ** 31) <= seconds < 2 ** 31:
            raise OutOfRangeError("The timestamp exceeds the allowed value.")
        return self.add_field("timestamp", str(seconds))

    def content_size(self) -> int:
        """Combined UTF-8 size of all field values."""
        return sum(len(v.encode("utf-8")) for v in (self.fields or {}).values())

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the documents endpoint."""
        payload: Dict[str, Any] = {"docid": self.document_id}
        if self.fields is not None:
            payload["fields"] = dict(self.fields)
        if self.categories is not None:
            payload["categories"] = dict(self.categories)
        if self.variables is not None:
            payload["variables"] = {str(k): v for k, v in self.variables.items()}
        return payload
