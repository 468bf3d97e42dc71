from datetime import date

from fastapi import APIRouter, Depends
from pymongo.collection import Collection

from app.db.database import (
    get_journal_collection,
    get_mistake_collection,
    get_overthinking_collection,
)
from app.models.stat import (
    JournalStatsResponse,
    MistakeStatsResponse,
    OverthinkingStatsResponse,
)
from app.routers.auth_dependency import get_current_user_id
from app.routers.query_utils import count_by, percentage
from app.services.dependencies import get_today

router = APIRouter(
    prefix="/api",
    tags=["Statistics"],
    dependencies=[Depends(get_current_user_id)]
)


# ==========================================
# API ENDPOINTS
# ==========================================

@router.get("/journal/stats", response_model=JournalStatsResponse)
async def get_journal_stats(
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
    today: date = Depends(get_today),
):
    this_month = today.strftime("%Y-%m")
    return JournalStatsResponse(
        total_entries=collection.count_documents({"userId": user_id}),
        this_month_entries=collection.count_documents(
            {"userId": user_id, "date": {"$regex": f"^{this_month}"}}
        ),
        mood_distribution=count_by(collection, {"userId": user_id}, "mood"),
    )


@router.get("/overthinking/stats", response_model=OverthinkingStatsResponse)
async def get_overthinking_stats(
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
):
    total_entries = collection.count_documents({"userId": user_id})
    dumped_entries = collection.count_documents({"userId": user_id, "dumped": True})

    return OverthinkingStatsResponse(
        total_entries=total_entries,
        dumped_entries=dumped_entries,
        release_rate=percentage(dumped_entries, total_entries),
        category_distribution=count_by(collection, {"userId": user_id}, "category"),
        average_intensity=average_intensity(collection, user_id),
    )


@router.get("/mistakes/stats", response_model=MistakeStatsResponse)
async def get_mistake_stats(
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
):
    total_entries = collection.count_documents({"userId": user_id})
    avoided_entries = collection.count_documents({"userId": user_id, "avoided": True})

    return MistakeStatsResponse(
        total_entries=total_entries,
        avoided_entries=avoided_entries,
        avoidance_rate=percentage(avoided_entries, total_entries),
        category_distribution=count_by(collection, {"userId": user_id}, "category"),
        best_streak=best_streak(collection, user_id),
    )


# ==========================================
# HELPER FUNCTIONS
# ==========================================

def average_intensity(collection: Collection, user_id: str) -> float:
    rows = list(collection.aggregate([
        {"$match": {"userId": user_id}},
        {"$group": {"_id": None, "avgIntensity": {"$avg": "$intensity"}}},
    ]))
    if not rows or rows[0]["avgIntensity"] is None:
        return 0.0
    return round(rows[0]["avgIntensity"], 1)


def best_streak(collection: Collection, user_id: str) -> int:
    rows = list(collection.aggregate([
        {"$match": {"userId": user_id}},
        {"$group": {"_id": None, "bestStreak": {"$max": "$streakInfo.bestStreak"}}},
    ]))
    if not rows or rows[0]["bestStreak"] is None:
        return 0
    return rows[0]["bestStreak"]
