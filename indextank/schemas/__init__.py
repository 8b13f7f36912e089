"""
Schemas Module - Data Objects

Models for documents, index metadata, search results and batch outcomes.
"""

from indextank.schemas.document import Document
from indextank.schemas.index import IndexInfo
from indextank.schemas.search import ResultDocument, SearchResult
from indextank.schemas.batch import (
    BatchIndexResult,
    BatchIndexResultCollection,
    BatchDeleteResult,
    BatchDeleteResultCollection,
)

__all__ = [
    "Document",
    "IndexInfo",
    "ResultDocument",
    "SearchResult",
    "BatchIndexResult",
    "BatchIndexResultCollection",
    "BatchDeleteResult",
    "BatchDeleteResultCollection",
]
