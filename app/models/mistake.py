from typing import Annotated, List, Literal, Optional
from pydantic import BeforeValidator, Field, NonNegativeInt
from datetime import datetime

from app.models.common import CamelModel, Pagination, PyObjectId, Tags

MistakeCategory = Literal[
    "work_career",
    "relationships",
    "health",
    "finance",
    "personal_growth",
    "communication",
    "time_management",
    "decision_making",
    "other",
]


class StreakInfo(CamelModel):
    current_streak: NonNegativeInt = 0
    best_streak: NonNegativeInt = 0
    # "YYYY-MM-DD", empty until the mistake is first avoided; older documents may hold null
    last_avoided_date: Annotated[str, BeforeValidator(lambda v: "" if v is None else v)] = ""


class MistakeEntryResponse(CamelModel):
    id: PyObjectId = Field(alias="_id")
    user_id: str
    mistake: str
    solution: str
    category: MistakeCategory = "other"
    date: str
    avoided: bool = False
    streak_info: StreakInfo = StreakInfo()
    tags: List[str] = []
    type: str = "mistake"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MistakeListResponse(CamelModel):
    entries: List[MistakeEntryResponse]
    pagination: Pagination


class NewMistakeRequest(CamelModel):
    mistake: str = Field(min_length=1)
    solution: str = Field(min_length=1)
    date: str = Field(min_length=1)
    category: MistakeCategory = "other"
    tags: Tags = []


class UpdateMistakeRequest(CamelModel):
    mistake: Optional[str] = None
    solution: Optional[str] = None
    category: Optional[MistakeCategory] = None
    avoided: Optional[bool] = None
    tags: Optional[Tags] = None
