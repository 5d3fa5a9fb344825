"""
GitHub OAuth login, session check and logout

Login flow:
    /auth/login     -> oauth_state cookie + redirect to GitHub
    /auth/callback  -> verify state, exchange code, fetch user, upsert user,
                       mint session, set session_id cookie, redirect to the
                       dashboard
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status
from fastapi.responses import RedirectResponse

from services.shared.config import Settings
from services.shared.github_client import build_authorize_url, exchange_code_for_token, fetch_github_user
from services.shared.sessions import STATUS_EXPIRED, SessionStore, generate_session_id, session_id_hash
from services.shared.users import get_user, upsert_github_user

from ..deps import get_session, get_session_store, get_settings
from ..schemas import MeResponse, MessageResponse
from ..security import (
    clear_oauth_state_cookie,
    clear_session_cookie,
    set_oauth_state_cookie,
    set_session_cookie,
)


logger = logging.getLogger("auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def _frontend_redirect(settings: Settings, suffix) -> RedirectResponse:
    return RedirectResponse(f"{settings.frontend_url}{suffix}", status_code=status.HTTP_302_FOUND)


def _states_match(state, stored_state) -> bool:
    if not state or not stored_state:
        return False
    return secrets.compare_digest(state.encode("utf-8"), stored_state.encode("utf-8"))


@router.get("/login")
def login(settings: Settings = Depends(get_settings)):
    """
    Start the GitHub OAuth flow

    Returns:
        Redirect to GitHub with a fresh anti-forgery state
    """
    state = generate_session_id()
    response = RedirectResponse(build_authorize_url(settings, state), status_code=status.HTTP_302_FOUND)
    set_oauth_state_cookie(response, settings, state)
    return response


@router.get("/callback")
def callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    oauth_state: Optional[str] = Cookie(default=None),
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    db=Depends(get_session),
):
    """
    Complete the GitHub OAuth flow

    Any failure after state validation redirects with error=auth_failed;
    the state cookie is only cleared on success

    Returns:
        Redirect to the dashboard or back to the frontend with an error flag
    """
    if not code or not _states_match(state, oauth_state):
        logger.warning("auth callback rejected: invalid state has_code=%s", bool(code))
        return _frontend_redirect(settings, "?error=invalid_state")

    try:
        access_token = exchange_code_for_token(settings, code)
        github_user = fetch_github_user(access_token)
        user_id = upsert_github_user(db, github_user, access_token)
        record = store.create(db, user_id, github_user.get("login"))
    except Exception:
        logger.exception("auth callback failed")
        db.rollback()
        return _frontend_redirect(settings, "?error=auth_failed")

    logger.info("auth callback succeeded user_id=%s session=%s", user_id, session_id_hash(record.session_id))

    response = _frontend_redirect(settings, "/dashboard")
    set_session_cookie(response, settings, record.session_id)
    clear_oauth_state_cookie(response, settings)
    return response


@router.get("/me", response_model=MeResponse)
def me(
    session_id: Optional[str] = Cookie(default=None),
    store: SessionStore = Depends(get_session_store),
    db=Depends(get_session),
):
    """
    Return the user behind the session cookie

    Returns:
        dict with user
    """
    if not session_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    lookup = store.resolve(session_id)
    if lookup.status == STATUS_EXPIRED:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
    if not lookup.is_valid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")

    user = get_user(db, lookup.record.user_id)
    if not user:
        logger.warning("session references missing user_id=%s", lookup.record.user_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {"user": user}


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    session_id: Optional[str] = Cookie(default=None),
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    db=Depends(get_session),
):
    if session_id:
        store.delete(db, session_id)

    clear_session_cookie(response, settings)
    return {"message": "Logged out successfully"}
