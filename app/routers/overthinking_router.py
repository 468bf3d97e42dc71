import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from app.db.database import get_overthinking_collection
from app.models.common import paginate
from app.models.overthinking import (
    NewOverthinkingRequest,
    OverthinkingCategory,
    OverthinkingEntryResponse,
    OverthinkingListResponse,
    UpdateOverthinkingRequest,
)
from app.routers.auth_dependency import get_current_user_id
from app.routers.query_utils import PageParams, new_document, to_object_id, utcnow

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Overthinking entry not found"

router = APIRouter(
    prefix="/api/overthinking",
    tags=["Overthinking"],
    dependencies=[Depends(get_current_user_id)]
)


@router.get("", response_model=OverthinkingListResponse)
async def list_entries(
    date: Optional[str] = Query(None),
    category: Optional[OverthinkingCategory] = Query(None),
    paging: PageParams = Depends(),
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
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
    return OverthinkingListResponse(
        entries=list(cursor), pagination=paginate(paging.page, paging.limit, total)
    )


@router.post("", response_model=OverthinkingEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: NewOverthinkingRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
):
    document = new_document(user_id, "overthinking", {
        "thought": request.thought,
        "solution": request.solution,
        "date": request.date,
        "category": request.category,
        "intensity": request.intensity,
        "dumped": False,
        "tags": request.tags,
    })
    result = collection.insert_one(document)
    logger.info("Overthinking entry created _id=%s userId=%s", result.inserted_id, user_id)
    return collection.find_one({"_id": result.inserted_id})


@router.get("/{entry_id}", response_model=OverthinkingEntryResponse)
async def get_single_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
):
    entry = collection.find_one({"_id": to_object_id(entry_id), "userId": user_id})
    if entry:
        return entry
    raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)


@router.put("/{entry_id}", response_model=OverthinkingEntryResponse)
async def update_entry(
    entry_id: str,
    request: UpdateOverthinkingRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
):
    object_id = to_object_id(entry_id)

    update_data = request.model_dump(exclude_none=True, by_alias=True)
    if not update_data.get("thought"):
        update_data.pop("thought", None)
    update_data["updatedAt"] = utcnow()

    updated_entry = collection.find_one_and_update(
        {"_id": object_id, "userId": user_id},
        {"$set": update_data},
        return_document=ReturnDocument.AFTER
    )
    if updated_entry:
        return updated_entry
    raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
):
    result = collection.delete_one({"_id": to_object_id(entry_id), "userId": user_id})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return {"message": "Overthinking entry deleted successfully"}


@router.patch("/{entry_id}/dump", response_model=OverthinkingEntryResponse)
async def dump_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_overthinking_collection),
):
    """Mark a thought as released."""
    updated_entry = collection.find_one_and_update(
        {"_id": to_object_id(entry_id), "userId": user_id},
        {"$set": {"dumped": True, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER
    )
    if updated_entry:
        return updated_entry
    raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
