"""Development fixture data for `/dev/seed`.

Wipes users, repositories, sessions and user-defined profiles, then inserts a
small fixed data set. Built-in profiles are kept and re-seeded.
"""

import json
import logging

from sqlalchemy import text

from services.shared.builtin_profiles import seed_builtin_profiles


logger = logging.getLogger("dev_seed")

DEMO_USERS = [
    {
        "github_id": 1234567,
        "username": "demo-user",
        "email": "demo@example.com",
        "avatar_url": "https://avatars.githubusercontent.com/u/1234567",
        "access_token": "ghu_fake_token_demo_user",
    },
    {
        "github_id": 7654321,
        "username": "test-developer",
        "email": "dev@example.com",
        "avatar_url": "https://avatars.githubusercontent.com/u/7654321",
        "access_token": "ghu_fake_token_test_dev",
    },
]

# owner_index points into DEMO_USERS
DEMO_REPOSITORIES = [
    {"owner_index": 0, "github_repo_id": 111111, "name": "awesome-project", "is_private": False},
    {"owner_index": 0, "github_repo_id": 222222, "name": "private-api", "is_private": True},
    {"owner_index": 1, "github_repo_id": 333333, "name": "test-repo", "is_private": False},
]

DEMO_PROFILES = [
    {
        "owner_index": 0,
        "name": "Strict TypeScript",
        "languages": ["typescript"],
        "preferences": {
            "naming": {
                "variables": "camelCase",
                "functions": "camelCase",
                "classes": "PascalCase",
                "constants": "UPPER_SNAKE_CASE",
            },
            "documentation": {
                "required": ["classes", "public_methods"],
                "style": "jsdoc",
            },
            "structure": {
                "max_file_length": 300,
                "max_function_length": 50,
                "indent": 2,
                "quotes": "single",
                "semicolons": True,
            },
        },
    },
    {
        "owner_index": 1,
        "name": "Relaxed JavaScript",
        "languages": ["javascript"],
        "preferences": {
            "naming": {
                "variables": "camelCase",
                "functions": "camelCase",
            },
            "documentation": {
                "required": ["classes"],
                "style": "inline",
            },
            "structure": {
                "max_file_length": 500,
                "indent": 2,
                "quotes": "double",
                "semicolons": False,
            },
        },
    },
]


def seed_dev_database(session):
    """
    Replace development data with the fixed demo data set

    Args:
        session: SQLAlchemy session (single transaction)

    Returns:
        dict counts of inserted users, repositories and profiles
    """
    session.execute(text("DELETE FROM sessions"))
    session.execute(text("DELETE FROM repositories"))
    session.execute(text("DELETE FROM users"))
    session.execute(text("DELETE FROM profiles WHERE is_builtin = :is_builtin"), {"is_builtin": False})

    user_ids = []
    for user in DEMO_USERS:
        row = session.execute(
            text(
                "INSERT INTO users (github_id, username, email, avatar_url, access_token)"
                " VALUES (:github_id, :username, :email, :avatar_url, :access_token)"
                " RETURNING id"
            ),
            user,
        ).fetchone()
        user_ids.append(int(row[0]))

    for repo in DEMO_REPOSITORIES:
        owner = DEMO_USERS[repo["owner_index"]]["username"]
        session.execute(
            text(
                "INSERT INTO repositories (user_id, github_repo_id, owner, name, full_name, is_private)"
                " VALUES (:user_id, :github_repo_id, :owner, :name, :full_name, :is_private)"
            ),
            {
                "user_id": user_ids[repo["owner_index"]],
                "github_repo_id": repo["github_repo_id"],
                "owner": owner,
                "name": repo["name"],
                "full_name": f"{owner}/{repo['name']}",
                "is_private": repo["is_private"],
            },
        )

    for profile in DEMO_PROFILES:
        session.execute(
            text(
                "INSERT INTO profiles (name, author, languages, preferences, custom_rules, is_builtin)"
                " VALUES (:name, :author, :languages, :preferences, :custom_rules, :is_builtin)"
            ),
            {
                "name": profile["name"],
                "author": DEMO_USERS[profile["owner_index"]]["username"],
                "languages": json.dumps(profile["languages"]),
                "preferences": json.dumps(profile["preferences"]),
                "custom_rules": json.dumps([]),
                "is_builtin": False,
            },
        )

    seed_builtin_profiles(session)

    counts = {
        "users": len(DEMO_USERS),
        "repositories": len(DEMO_REPOSITORIES),
        "profiles": len(DEMO_PROFILES),
    }
    logger.info("Development database seeded", extra=counts)
    return counts


def table_counts(session):
    """
    Row counts for the development status endpoint

    Returns:
        dict table name -> count
    """
    counts = {}
    for table in ("users", "repositories", "profiles", "sessions"):
        counts[table] = int(session.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar() or 0)
    return counts
