"""
Schemas - Index Models

Pydantic model for index metadata returned by the service.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class IndexInfo(BaseModel):
    """Metadata of a server-side index."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: Optional[str] = None
    started: bool = False
    code: Optional[str] = None
    creation_time: Optional[datetime] = None
    size: int = 0
    public_search: bool = False
    did_you_mean: bool = False
