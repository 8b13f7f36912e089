"""
Schemas - Search Models

Pydantic models for decoded search responses.
"""

from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class ResultDocument(BaseModel):
    """
    A document matched by a query.

    Each attachment is None when the query did not request it (or the
    service returned nothing for it), never an empty container.
    """
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="docid")
    query_relevance_score: float = 0.0
    snippets: Optional[Dict[str, str]] = None
    categories: Optional[Dict[str, str]] = None
    fields: Optional[Dict[str, str]] = None
    variables: Optional[List[float]] = None


class SearchResult(BaseModel):
    """Full search response."""
    model_config = ConfigDict(populate_by_name=True)

    matches: int
    search_time: Decimal
    query_text: str = Field(alias="query")
    did_you_mean: Optional[str] = Field(default=None, alias="didyoumean")
    result_documents: List[ResultDocument] = Field(default_factory=list, alias="results")
    facets: Optional[Dict[str, Dict[str, int]]] = None
