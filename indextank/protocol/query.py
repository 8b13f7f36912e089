"""
Protocol - Query Builder

Accumulates search parameters into the service's URL-encoded wire format.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from indextank.errors import InvalidArgumentError


CATEGORY_FILTERS = "category_filters"
RANGE_FILTER_PREFIXES = ("filter_docvar", "filter_function")
UNBOUNDED = "*"


def format_number(value: float) -> str:
    """Render a number with a period decimal and no trailing ``.0``."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_bound(value: float) -> str:
    """Render a range bound; infinities become the unbounded marker."""
    number = float(value)
    if math.isnan(number):
        raise InvalidArgumentError("A range bound is not a number.")
    if math.isinf(number):
        return UNBOUNDED
    return format_number(number)


def _clean_fields(fields: Sequence[Optional[str]], argument: str) -> List[str]:
    # Accept either varargs or a single list/tuple of names
    if len(fields) == 1 and isinstance(fields[0], (list, tuple)):
        fields = fields[0]
    if fields is None or any(f is None for f in fields):
        raise InvalidArgumentError(f"One or more of the {argument} are null.")
    return [f for f in fields if f.strip()]


@dataclass(frozen=True)
class RequestedAttachments:
    """What a query asked the service to attach to each result."""
    snippet_fields: FrozenSet[str] = frozenset()
    fetch_fields: FrozenSet[str] = frozenset()
    variables: bool = False
    categories: bool = False


class Query:
    """
    A search query built incrementally by chaining ``with_*`` calls.

    Parameters are kept as an ordered list of ``(key, value)`` pairs and
    rendered to the wire format only when the query is sent. A query is
    owned by its creator and must not be mutated from several threads.
    """

    def __init__(self, text: str):
        if text is None:
            raise InvalidArgumentError("The query text is null.")
        if not isinstance(text, str) or not text.strip():
            raise InvalidArgumentError("The query text is empty.")

        self._text = text
        self._pairs: List[Tuple[str, Any]] = [("q", text)]

    def __repr__(self) -> str:
        return f"Query({self.to_query_string()!r})"

    @property
    def text(self) -> str:
        """The search text supplied at construction."""
        return self._text

    # Paging

    def skip(self, count: int) -> "Query":
        """Skip the first ``count`` matching documents."""
        self._pairs.append(("start", str(int(count))))
        return self

    def take(self, count: int) -> "Query":
        """Return at most ``count`` matching documents."""
        self._pairs.append(("len", str(int(count))))
        return self

    # Scoring and attachments

    def with_scoring_function(self, function_number: int) -> "Query":
        """Order results with the server-side scoring function ``function_number``."""
        self._pairs.append(("function", str(int(function_number))))
        return self

    def with_snippet_from_fields(self, *fields: str) -> "Query":
        """
        Return highlighted snippets from the given fields.

        Blank names are skipped; a ``None`` name is rejected.
        """
        names = _clean_fields(fields, "snippet fields")
        self._pairs.append(("snippet", ",".join(names)))
        return self

    def with_fields(self, *fields: str) -> "Query":
        """
        Return the full content of the given fields.

        Blank names are skipped; a ``None`` name is rejected.
        """
        names = _clean_fields(fields, "fetch fields")
        self._pairs.append(("fetch", ",".join(names)))
        return self

    def with_variables(self) -> "Query":
        self._pairs.append(("fetch_variables", "true"))
        return self

    def with_categories(self) -> "Query":
        self._pairs.append(("fetch_categories", "true"))
        return self

    def with_query_variable(self, variable_number: int, value: float) -> "Query":
        """Supply query variable ``variable_number`` to the scoring function."""
        self._pairs.append((f"var{int(variable_number)}", format_number(value)))
        return self

    # Filters

    def with_category_filter(self, category: str, *matches: str) -> "Query":
        """
        Restrict results to documents whose ``category`` has one of ``matches``.

        Repeated calls accumulate: distinct categories must all match, values
        given for the same category are alternatives.

        Args:
            category: Category name
            matches: Accepted category values (blank values are skipped)

        Returns:
            The same query
        """
        if category is None:
            raise InvalidArgumentError("The category is null.")
        if not category.strip():
            raise InvalidArgumentError("The category is empty.")
        values = _clean_fields(matches, "matches")
        self._pairs.append((CATEGORY_FILTERS, (category, tuple(values))))
        return self

    def with_document_variable_filter(
        self,
        variable_number: int,
        lower_bound: float,
        upper_bound: float,
    ) -> "Query":
        """
        Restrict results to documents whose variable lies within a range.

        Infinite bounds leave that side of the range open. Several ranges on
        the same variable are passed to the service, which decides how they
        combine.
        """
        key = f"filter_docvar{int(variable_number)}"
        self._pairs.append((key, f"{format_bound(lower_bound)}:{format_bound(upper_bound)}"))
        return self

    def with_function_filter(
        self,
        function_number: int,
        lower_bound: float,
        upper_bound: float,
    ) -> "Query":
        """Restrict results to documents whose function score lies within a range."""
        key = f"filter_function{int(function_number)}"
        self._pairs.append((key, f"{format_bound(lower_bound)}:{format_bound(upper_bound)}"))
        return self

    # Rendering

    @property
    def parameters(self) -> List[Tuple[str, str]]:
        """
        Rendered wire parameters in call order.

        Category filters collapse into a single JSON map and repeated ranges
        on the same key into a comma-separated list, each at the position
        of its first occurrence.
        """
        rendered: List[Tuple[str, str]] = []
        positions = {}
        categories = {}

        for key, value in self._pairs:
            if key == CATEGORY_FILTERS:
                name, values = value
                categories.setdefault(name, []).extend(values)
                if key not in positions:
                    positions[key] = len(rendered)
                    rendered.append((key, ""))
            elif key.startswith(RANGE_FILTER_PREFIXES):
                if key in positions:
                    index = positions[key]
                    rendered[index] = (key, f"{rendered[index][1]},{value}")
                else:
                    positions[key] = len(rendered)
                    rendered.append((key, value))
            else:
                rendered.append((key, value))

        if categories:
            rendered[positions[CATEGORY_FILTERS]] = (
                CATEGORY_FILTERS,
                json.dumps(categories, separators=(",", ":"), ensure_ascii=False),
            )

        return rendered

    def to_query_string(self) -> str:
        return urlencode(self.parameters)

    def get(self, key: str) -> Optional[str]:
        """Last rendered value for ``key``, or None."""
        value = None
        for name, rendered in self.parameters:
            if name == key:
                value = rendered
        return value

    def has_parameter(self, key: str) -> bool:
        return any(name == key for name, _ in self._pairs)

    def paging_span(self) -> int:
        """Sum of the effective ``skip`` and ``take`` values (missing counts as 0)."""
        return int(self.get("start") or 0) + int(self.get("len") or 0)

    def requested_attachments(self) -> RequestedAttachments:
        snippets = set()
        fetches = set()
        for key, value in self._pairs:
            if key == "snippet":
                snippets.update(f for f in value.split(",") if f)
            elif key == "fetch":
                fetches.update(f for f in value.split(",") if f)

        return RequestedAttachments(
            snippet_fields=frozenset(snippets),
            fetch_fields=frozenset(fetches),
            variables=self.has_parameter("fetch_variables"),
            categories=self.has_parameter("fetch_categories"),
        )

    def with_text(self, text: str) -> "Query":
        """Copy of this query with the search text replaced."""
        clone = Query(text)
        clone._pairs.extend(pair for pair in self._pairs if pair[0] != "q")
        return clone
