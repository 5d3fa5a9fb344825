from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from services.shared.config import Settings
from services.shared.sessions import SessionStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_session(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session

    Commits when the handler returns, rolls back when it raises

    Args:
        request (Request): Incoming request; the database lives on app.state

    Returns:
        Generator yielding SQLAlchemy Session
    """
    session = request.app.state.database.SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
