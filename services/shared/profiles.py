import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError


logger = logging.getLogger("profiles")

PROFILE_COLUMNS = (
    "id, name, description, author, languages, preferences, custom_rules,"
    " reference_guide_path, is_builtin, created_at, updated_at"
)

UPDATABLE_FIELDS = (
    "name",
    "description",
    "author",
    "languages",
    "preferences",
    "custom_rules",
    "reference_guide_path",
)

JSON_FIELDS = {"languages", "preferences", "custom_rules"}


class ProfileError(Exception):
    """
    Base class for profile service failures

    The message is safe to return to API callers
    """


class ProfileNotFoundError(ProfileError):
    def __init__(self, message="Profile not found"):
        super().__init__(message)


class BuiltinProfileError(ProfileError):
    """
    Raised when a mutation targets a built-in profile
    """


class DuplicateProfileNameError(ProfileError):
    def __init__(self, message="Profile name already exists"):
        super().__init__(message)


class ProfileValidationError(ProfileError):
    pass


def to_iso8601_z(value) -> Optional[str]:
    """
    Render a timestamp as ISO-8601 with a trailing Z when in UTC

    SQLite returns CURRENT_TIMESTAMP columns as text through raw SQL; those
    values are passed through unchanged

    Args:
        value (datetime | str): Timestamp or None

    Returns:
        str or None
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        return str(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _loads_or_default(raw, default):
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        logger.warning("profile column decode failed error=%s", type(exc).__name__)
        return default


def decode_profile_row(row) -> Dict[str, Any]:
    """
    Convert a profiles row into an API-ready dict

    Args:
        row (Mapping): Row from a `SELECT PROFILE_COLUMNS` query

    Returns:
        dict with JSON columns deserialized and is_builtin as bool
    """
    return {
        "id": int(row["id"]),
        "name": row["name"],
        "description": row["description"],
        "author": row["author"],
        "languages": _loads_or_default(row["languages"], []),
        "preferences": _loads_or_default(row["preferences"], {}),
        "custom_rules": _loads_or_default(row["custom_rules"], []),
        "reference_guide_path": row["reference_guide_path"],
        "is_builtin": bool(row["is_builtin"]),
        "created_at": to_iso8601_z(row["created_at"]),
        "updated_at": to_iso8601_z(row["updated_at"]),
    }


def list_profiles(session) -> List[Dict[str, Any]]:
    """
    Return every profile, built-in first, then by name

    Args:
        session: SQLAlchemy session

    Returns:
        list of profile dicts
    """
    rows = session.execute(
        text(f"SELECT {PROFILE_COLUMNS} FROM profiles ORDER BY is_builtin DESC, name ASC")
    ).mappings().fetchall()
    return [decode_profile_row(row) for row in rows]


def get_profile(session, profile_id) -> Dict[str, Any]:
    """
    Fetch a single profile

    Args:
        session: SQLAlchemy session
        profile_id (int): Profile id

    Returns:
        profile dict

    Raises:
        ProfileNotFoundError: When no row matches
    """
    row = session.execute(
        text(f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id = :id"),
        {"id": int(profile_id)},
    ).mappings().fetchone()
    if not row:
        raise ProfileNotFoundError()
    return decode_profile_row(row)


def create_profile(
    session,
    name,
    preferences,
    description=None,
    author=None,
    languages=None,
    custom_rules=None,
    reference_guide_path=None,
) -> int:
    """
    Insert a user-defined profile

    Profiles created here are never built-in

    Args:
        session: SQLAlchemy session
        name (str): Unique profile name
        preferences (dict): Preference tree
        description (str): Optional description
        author (str): Optional author
        languages (list): Optional languages, defaults to []
        custom_rules (list): Optional rules, defaults to []
        reference_guide_path (str): Optional path to a reference guide

    Returns:
        int id of the new profile

    Raises:
        ProfileValidationError: When name or preferences are missing
        DuplicateProfileNameError: When the name is already taken
    """
    if not name or preferences is None:
        raise ProfileValidationError("Name and preferences are required")

    try:
        row = session.execute(
            text(
                "INSERT INTO profiles ("
                " name, description, author, languages, preferences,"
                " custom_rules, reference_guide_path, is_builtin"
                ") VALUES ("
                " :name, :description, :author, :languages, :preferences,"
                " :custom_rules, :reference_guide_path, :is_builtin"
                ") RETURNING id"
            ),
            {
                "name": name,
                "description": description or None,
                "author": author or None,
                "languages": json.dumps(languages or []),
                "preferences": json.dumps(preferences),
                "custom_rules": json.dumps(custom_rules or []),
                "reference_guide_path": reference_guide_path or None,
                "is_builtin": False,
            },
        ).fetchone()
    except IntegrityError as exc:
        logger.info("create_profile rejected duplicate name=%r", name)
        raise DuplicateProfileNameError() from exc

    profile_id = int(row[0])
    logger.info("create_profile id=%s name=%r", profile_id, name)
    return profile_id


def _require_mutable(session, profile_id, action) -> None:
    row = session.execute(
        text("SELECT is_builtin FROM profiles WHERE id = :id"),
        {"id": int(profile_id)},
    ).fetchone()

    if not row:
        raise ProfileNotFoundError()

    if bool(row[0]):
        raise BuiltinProfileError(f"Cannot {action} built-in profiles")


def update_profile(session, profile_id, fields) -> None:
    """
    Apply a partial update to a user-defined profile

    Only keys present in `fields` are written; `updated_at` is re-stamped

    Args:
        session: SQLAlchemy session
        profile_id (int): Profile id
        fields (dict): Subset of UPDATABLE_FIELDS

    Returns:
        None

    Raises:
        ProfileNotFoundError: When the profile does not exist
        BuiltinProfileError: When the profile is built-in
        ProfileValidationError: When nothing to update or a required field is cleared
        DuplicateProfileNameError: When the new name is already taken
    """
    _require_mutable(session, profile_id, "modify")

    present = {key: value for key, value in (fields or {}).items() if key in UPDATABLE_FIELDS}
    if not present:
        raise ProfileValidationError("No fields to update")

    if "name" in present and not present["name"]:
        raise ProfileValidationError("Name cannot be empty")
    if "preferences" in present and present["preferences"] is None:
        raise ProfileValidationError("Preferences cannot be null")

    assignments = []
    params = {"id": int(profile_id)}
    for key in UPDATABLE_FIELDS:
        if key not in present:
            continue

        value = present[key]
        if key in JSON_FIELDS:
            value = json.dumps(value if value is not None else [])

        assignments.append(f"{key} = :{key}")
        params[key] = value

    assignments.append("updated_at = CURRENT_TIMESTAMP")

    try:
        session.execute(
            text(f"UPDATE profiles SET {', '.join(assignments)} WHERE id = :id"),
            params,
        )
    except IntegrityError as exc:
        logger.info("update_profile rejected duplicate name id=%s", profile_id)
        raise DuplicateProfileNameError() from exc

    logger.info("update_profile id=%s fields=%s", profile_id, sorted(present))


def delete_profile(session, profile_id) -> None:
    """
    Delete a user-defined profile

    Args:
        session: SQLAlchemy session
        profile_id (int): Profile id

    Raises:
        ProfileNotFoundError: When the profile does not exist
        BuiltinProfileError: When the profile is built-in
    """
    _require_mutable(session, profile_id, "delete")

    session.execute(text("DELETE FROM profiles WHERE id = :id"), {"id": int(profile_id)})
    logger.info("delete_profile id=%s", profile_id)
