from typing import Dict

from app.models.common import CamelModel


class JournalStatsResponse(CamelModel):
    total_entries: int
    this_month_entries: int
    mood_distribution: Dict[str, int]


class OverthinkingStatsResponse(CamelModel):
    total_entries: int
    dumped_entries: int
    # Percentages, one decimal
    release_rate: float
    category_distribution: Dict[str, int]
    average_intensity: float


class MistakeStatsResponse(CamelModel):
    total_entries: int
    avoided_entries: int
    avoidance_rate: float
    category_distribution: Dict[str, int]
    best_streak: int
