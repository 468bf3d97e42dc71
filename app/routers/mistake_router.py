import logging
from datetime import date as Date
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from app.db.database import get_mistake_collection
from app.models.common import paginate
from app.models.mistake import (
    MistakeCategory,
    MistakeEntryResponse,
    MistakeListResponse,
    NewMistakeRequest,
    StreakInfo,
    UpdateMistakeRequest,
)
from app.routers.auth_dependency import get_current_user_id
from app.routers.query_utils import PageParams, new_document, to_object_id, utcnow
from app.services.dependencies import get_today
from app.services.streak import record_avoidance

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Mistake entry not found"
MAX_UPDATE_ATTEMPTS = 3

router = APIRouter(
    prefix="/api/mistakes",
    tags=["Mistakes"],
    dependencies=[Depends(get_current_user_id)]
)


def mark_avoided(entry: Dict[str, Any], today: Date) -> Dict[str, Any]:
    """Fields to $set when a mistake is marked as avoided today."""
    streak = StreakInfo.model_validate(entry.get("streakInfo") or {})
    return {
        "avoided": True,
        "streakInfo": record_avoidance(streak, today).model_dump(by_alias=True),
    }


def update_with_version_check(
    collection: Collection,
    entry_filter: Dict[str, Any],
    build_changes: Callable[[Dict[str, Any]], Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Read-modify-write a mistake guarded by its ``version`` field.

    ``build_changes`` receives the current document and returns the fields
    to set. The write only lands if nobody bumped the version in between;
    otherwise the document is re-read and the changes recomputed.
    """
    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        entry = collection.find_one(entry_filter)
        if entry is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)

        version = entry.get("version")
        guard = dict(entry_filter)
        guard["version"] = version if version is not None else {"$exists": False}

        changes = build_changes(entry)
        changes["updatedAt"] = utcnow()
        updated_entry = collection.find_one_and_update(
            guard,
            {"$set": changes, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if updated_entry is not None:
            return updated_entry
        logger.warning("Concurrent update on mistake %s (attempt %d/%d)",
                       entry_filter["_id"], attempt, MAX_UPDATE_ATTEMPTS)

    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Mistake entry was modified concurrently, please retry",
    )


@router.get("", response_model=MistakeListResponse)
async def list_entries(
    date: Optional[str] = Query(None),
    category: Optional[MistakeCategory] = Query(None),
    paging: PageParams = Depends(),
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
):
    query = {"userId": user_id}
    if date:
        query["date"] = date
    if category:
        query["category"] = category

    cursor = (
        collection.find(query)
        .sort("createdAt", DESCENDING)
        .skip(paging.skip)
        .limit(paging.limit)
    )
    total = collection.count_documents(query)
    return MistakeListResponse(
        entries=list(cursor), pagination=paginate(paging.page, paging.limit, total)
    )


@router.post("", response_model=MistakeEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: NewMistakeRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
):
    document = new_document(user_id, "mistake", {
        "mistake": request.mistake,
        "solution": request.solution,
        "category": request.category,
        "date": request.date,
        "avoided": False,
        "streakInfo": StreakInfo().model_dump(by_alias=True),
        "tags": request.tags,
        "version": 0,
    })
    result = collection.insert_one(document)
    logger.info("Mistake entry created _id=%s userId=%s", result.inserted_id, user_id)
    return collection.find_one({"_id": result.inserted_id})


@router.get("/{entry_id}", response_model=MistakeEntryResponse)
async def get_single_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
):
    entry = collection.find_one({"_id": to_object_id(entry_id), "userId": user_id})
    if entry:
        return entry
    raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)


@router.put("/{entry_id}", response_model=MistakeEntryResponse)
async def update_entry(
    entry_id: str,
    request: UpdateMistakeRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
    today: Date = Depends(get_today),
):
    entry_filter = {"_id": to_object_id(entry_id), "userId": user_id}

    update_data = request.model_dump(exclude_none=True, by_alias=True, exclude={"avoided"})
    for field in ("mistake", "solution"):
        if not update_data.get(field):
            update_data.pop(field, None)

    def build_changes(entry: Dict[str, Any]) -> Dict[str, Any]:
        changes = dict(update_data)
        if request.avoided:
            changes.update(mark_avoided(entry, today))
        elif request.avoided is False:
            changes["avoided"] = False
        return changes

    return update_with_version_check(collection, entry_filter, build_changes)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
):
    result = collection.delete_one({"_id": to_object_id(entry_id), "userId": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return {"message": "Mistake entry deleted successfully"}


@router.patch("/{entry_id}/toggle-avoided", response_model=MistakeEntryResponse)
async def toggle_avoided(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_mistake_collection),
    today: Date = Depends(get_today),
):
    entry_filter = {"_id": to_object_id(entry_id), "userId": user_id}

    def build_changes(entry: Dict[str, Any]) -> Dict[str, Any]:
        if entry.get("avoided"):
            return {"avoided": False}
        return mark_avoided(entry, today)

    return update_with_version_check(collection, entry_filter, build_changes)
