from typing import List, Literal, Optional
from pydantic import Field
from datetime import datetime

from app.models.common import CamelModel, Pagination, PyObjectId, Tags

OverthinkingCategory = Literal[
    "work", "relationships", "health", "finance", "future", "past", "other"
]


class OverthinkingEntryResponse(CamelModel):
    id: PyObjectId = Field(alias="_id")
    user_id: str
    thought: str
    solution: str = ""
    date: str
    category: OverthinkingCategory = "other"
    intensity: int = 5
    dumped: bool = False
    tags: List[str] = []
    type: str = "overthinking"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OverthinkingListResponse(CamelModel):
    entries: List[OverthinkingEntryResponse]
    pagination: Pagination


class NewOverthinkingRequest(CamelModel):
    thought: str = Field(min_length=1)
    date: str = Field(min_length=1)
    solution: str = ""
    category: OverthinkingCategory = "other"
    intensity: int = Field(default=5, ge=1, le=10)
    tags: Tags = []


class UpdateOverthinkingRequest(CamelModel):
    thought: Optional[str] = None
    solution: Optional[str] = None
    category: Optional[OverthinkingCategory] = None
    intensity: Optional[int] = Field(default=None, ge=1, le=10)
    dumped: Optional[bool] = None
    tags: Optional[Tags] = None
