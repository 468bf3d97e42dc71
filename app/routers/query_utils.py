from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId
from fastapi import HTTPException, Query, status
from pymongo.collection import Collection

ID_INVALID_MESSAGE = "Invalid ID"


def to_object_id(entry_id: str) -> ObjectId:
    if not ObjectId.is_valid(entry_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ID_INVALID_MESSAGE)
    return ObjectId(entry_id)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_document(user_id: str, record_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    now = utcnow()
    return {
        "userId": user_id,
        **fields,
        "type": record_type,
        "createdAt": now,
        "updatedAt": now,
    }


class PageParams:
    """page/limit query parameters shared by every list endpoint."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=100),
    ):
        self.page = page
        self.limit = limit

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def count_by(collection: Collection, match: Dict[str, Any], field: str) -> Dict[str, int]:
    cursor = collection.aggregate([
        {"$match": match},
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
    ])
    return {str(row["_id"]): row["count"] for row in cursor}


def percentage(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(part / total * 100, 1)
