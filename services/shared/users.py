import logging
from typing import Any, Dict, Optional

from sqlalchemy import text

from services.shared.profiles import to_iso8601_z


logger = logging.getLogger("users")


def upsert_github_user(session, github_user, access_token) -> int:
    """
    Insert or refresh a user keyed by GitHub id

    Username, email, avatar and access token are overwritten on every login

    Args:
        session: SQLAlchemy session
        github_user (dict): GitHub `/user` payload (id, login, email, avatar_url)
        access_token (str): OAuth or personal access token

    Returns:
        int internal user id

    Raises:
        ValueError: When the GitHub payload has no id or login
    """
    github_id = (github_user or {}).get("id")
    login = (github_user or {}).get("login")
    if not github_id or not login:
        raise ValueError("github user payload missing id or login")

    params = {
        "github_id": int(github_id),
        "username": str(login),
        "email": github_user.get("email"),
        "avatar_url": github_user.get("avatar_url"),
        "access_token": access_token,
    }

    existing = session.execute(
        text("SELECT id FROM users WHERE github_id = :github_id"),
        {"github_id": params["github_id"]},
    ).fetchone()

    if existing:
        user_id = int(existing[0])
        session.execute(
            text(
                "UPDATE users SET"
                " username = :username,"
                " email = :email,"
                " avatar_url = :avatar_url,"
                " access_token = :access_token,"
                " updated_at = CURRENT_TIMESTAMP"
                " WHERE id = :id"
            ),
            {**params, "id": user_id},
        )
        logger.info("upsert_github_user updated user_id=%s github_id=%s", user_id, params["github_id"])
        return user_id

    row = session.execute(
        text(
            "INSERT INTO users (github_id, username, email, avatar_url, access_token)"
            " VALUES (:github_id, :username, :email, :avatar_url, :access_token)"
            " RETURNING id"
        ),
        params,
    ).fetchone()

    user_id = int(row[0])
    logger.info("upsert_github_user created user_id=%s github_id=%s", user_id, params["github_id"])
    return user_id


def get_user(session, user_id) -> Optional[Dict[str, Any]]:
    """
    Return the public projection of a user

    The access token is never included

    Args:
        session: SQLAlchemy session
        user_id (int): Internal user id

    Returns:
        dict or None
    """
    row = session.execute(
        text("SELECT id, github_id, username, email, avatar_url, created_at FROM users WHERE id = :id"),
        {"id": int(user_id)},
    ).mappings().fetchone()
    if not row:
        return None

    return {
        "id": int(row["id"]),
        "github_id": int(row["github_id"]),
        "username": row["username"],
        "email": row["email"],
        "avatar_url": row["avatar_url"],
        "created_at": to_iso8601_z(row["created_at"]),
    }
