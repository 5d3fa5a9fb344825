"""
Development-only endpoints

Session creation without the browser OAuth flow (for the CLI), database
reseeding and row counts. Every route answers 403 outside development.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, status

from services.shared.dev_seed import seed_dev_database, table_counts
from services.shared.profiles import to_iso8601_z
from services.shared.sessions import SessionStore
from services.shared.users import upsert_github_user

from ..deps import get_session, get_session_store
from ..schemas import (
    DatabaseStatusResponse,
    DevCreateSessionRequest,
    DevCreateSessionResponse,
    SeedResponse,
)
from ..security import require_development


logger = logging.getLogger("api.dev")

router = APIRouter(prefix="/dev", tags=["dev"], dependencies=[Depends(require_development)])


@router.post("/create-session", response_model=DevCreateSessionResponse)
def create_session(
    body: DevCreateSessionRequest,
    store: SessionStore = Depends(get_session_store),
    db=Depends(get_session),
):
    """
    Create a session for a GitHub user without OAuth

    Args:
        body (DevCreateSessionRequest): github_token and the GitHub `/user` payload

    Returns:
        dict with session_id, user_id, username, expires_at
    """
    if body.github_token is None or not body.github_token.get_secret_value() or body.github_user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing github_token or github_user")

    github_user = body.github_user.model_dump()
    try:
        user_id = upsert_github_user(db, github_user, body.github_token.get_secret_value())
        record = store.create(db, user_id, body.github_user.login)
    except Exception as exc:
        logger.exception("dev create-session failed", extra={"github_id": body.github_user.id})
        raise HTTPException(status_code=500, detail="Failed to create session") from exc

    return {
        "session_id": record.session_id,
        "user_id": record.user_id,
        "username": record.username,
        "expires_at": to_iso8601_z(record.expires_at_datetime),
    }


@router.post("/seed", response_model=SeedResponse)
def seed(
    session_id: Optional[str] = Cookie(default=None),
    store: SessionStore = Depends(get_session_store),
    db=Depends(get_session),
):
    """
    Replace development data with the demo data set

    Requires a valid session
    """
    if not session_id or not store.resolve(session_id).is_valid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        counts = seed_dev_database(db)
    except Exception as exc:
        logger.exception("dev seed failed")
        raise HTTPException(status_code=500, detail="Failed to seed database") from exc

    return {"message": "Database seeded successfully", "data": counts}


@router.get("/status", response_model=DatabaseStatusResponse)
def database_status(db=Depends(get_session)):
    try:
        counts = table_counts(db)
    except Exception as exc:
        logger.exception("dev status failed")
        raise HTTPException(status_code=500, detail="Failed to check status") from exc

    return {"database": counts}
