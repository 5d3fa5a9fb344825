"""
API security: session and OAuth state cookies, development gate
"""

from fastapi import Depends, HTTPException, status

from services.shared.config import Settings

from .deps import get_settings


SESSION_COOKIE_NAME = "session_id"
OAUTH_STATE_COOKIE_NAME = "oauth_state"


def set_session_cookie(response, settings: Settings, session_id) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response, settings: Settings) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def set_oauth_state_cookie(response, settings: Settings, state) -> None:
    response.set_cookie(
        key=OAUTH_STATE_COOKIE_NAME,
        value=state,
        max_age=settings.oauth_state_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_oauth_state_cookie(response, settings: Settings) -> None:
    response.delete_cookie(
        key=OAUTH_STATE_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


async def require_development(settings: Settings = Depends(get_settings)) -> None:
    """
    Reject requests unless the process runs in the development environment

    Returns:
        None. Raises HTTPException on failure
    """
    if not settings.is_development:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This endpoint is only available in development",
        )
