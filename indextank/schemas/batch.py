"""
Schemas - Batch Models

Per-item outcomes of batch add and delete requests.
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Optional

from indextank.schemas.document import Document


class BatchIndexResult(BaseModel):
    """Outcome of adding one document in a batch."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    added: bool = False
    error: Optional[str] = None
    document: Optional[Document] = None

    @property
    def failed(self) -> bool:
        return bool(self.error and self.error.strip())


class BatchDeleteResult(BaseModel):
    """Outcome of deleting one document in a batch."""
    deleted: bool = False
    error: Optional[str] = None
    document_id: Optional[str] = None

    @property
    def failed(self) -> bool:
        return bool(self.error and self.error.strip())


class BatchIndexResultCollection(list):
    """Batch add outcomes, in submission order."""

    def failed_documents(self) -> List[Document]:
        """Documents whose addition failed, ready to be resubmitted."""
        return [r.document for r in self if r.failed]


class BatchDeleteResultCollection(list):
    """Batch delete outcomes, in submission order."""

    def failed_document_ids(self) -> List[str]:
        """Identifiers whose deletion failed, ready to be resubmitted."""
        return [r.document_id for r in self if r.failed]
