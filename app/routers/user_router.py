from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument
from pymongo.collection import Collection

from app.db.database import get_user_collection
from app.models.user import UserProfileResponse, UserProfileUpdateRequest
from app.routers.auth_dependency import get_current_user_id
from app.routers.query_utils import utcnow

router = APIRouter(
    prefix="/api/auth",
    tags=["User"],
    dependencies=[Depends(get_current_user_id)]
)


@router.get("/profile", response_model=UserProfileResponse)
async def get_user_profile(
    user_id: str = Depends(get_current_user_id),
    user_collection: Collection = Depends(get_user_collection),
):
    user = user_collection.find_one({"_id": user_id})
    if user:
        return user
    raise HTTPException(status_code=404, detail="User not found")


@router.put("/profile", response_model=UserProfileResponse)
async def update_user_profile(
    request: UserProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    user_collection: Collection = Depends(get_user_collection),
):
    update_data = request.model_dump(exclude_unset=True, by_alias=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No profile fields to update")
    update_data["updatedAt"] = utcnow()

    updated_user = user_collection.find_one_and_update(
        {"_id": user_id},
        {"$set": update_data},
        return_document=ReturnDocument.AFTER
    )
    if updated_user:
        return updated_user
    raise HTTPException(status_code=404, detail="User not found")
