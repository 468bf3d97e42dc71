import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from pymongo.collection import Collection

from app.core.config import settings
from app.db.database import get_user_collection

logger = logging.getLogger(__name__)

# Reuses the HTTP session and the cached Firebase signing certificates
_google_request = google_requests.Request()


def verify_bearer_token(
    authorization: Annotated[Optional[str], Header()] = None,
) -> Dict[str, Any]:
    """Verify the Firebase ID token from ``Authorization: Bearer <token>``."""
    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer":
            token = credentials.strip()

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    if not settings.FIREBASE_PROJECT_ID:
        logger.error("FIREBASE_PROJECT_ID is not set; cannot verify tokens")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token verification is not configured",
        )

    try:
        return id_token.verify_firebase_token(
            token, _google_request, audience=settings.FIREBASE_PROJECT_ID
        )
    except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
        logger.warning("Token verification failed: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def get_current_user_id(
    claims: Annotated[Dict[str, Any], Depends(verify_bearer_token)],
    user_collection: Annotated[Collection, Depends(get_user_collection)],
) -> str:
    uid = claims.get("user_id") or claims.get("sub")
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    now = datetime.now(timezone.utc)
    user_collection.find_one_and_update(
        {"_id": uid},
        {
            "$setOnInsert": {
                "firebaseUid": uid,
                "email": claims.get("email"),
                "name": claims.get("name"),
                "subscription": {"isActive": False, "plan": "trial", "trialStart": now},
                "createdAt": now,
                "updatedAt": now,
            },
        },
        upsert=True,
    )

    return uid
