"""Schema snapshot (authoritative).

Alembic revision 001 materializes this metadata; later revisions alter it.

Profiles keep `languages`, `preferences` and `custom_rules` as serialized
JSON text so that the row shape is identical on PostgreSQL and SQLite.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    text,
)


metadata = MetaData()


users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("github_id", BigInteger, nullable=False, unique=True),
    Column("username", String(255), nullable=False),
    Column("email", String(320), nullable=True),
    Column("avatar_url", Text, nullable=True),
    Column("access_token", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)


sessions = Table(
    "sessions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)


repositories = Table(
    "repositories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("github_repo_id", BigInteger, nullable=False, unique=True),
    Column("owner", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("full_name", String(511), nullable=False),
    Column("is_private", Boolean, nullable=False, server_default=text("false")),
    Column("default_branch", String(255), nullable=False, server_default="main"),
    Column("connected_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("last_analyzed_at", DateTime(timezone=True), nullable=True),
)


profiles = Table(
    "profiles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("description", Text, nullable=True),
    Column("author", String(255), nullable=True),
    Column("languages", Text, nullable=False, server_default="[]"),
    Column("preferences", Text, nullable=False),
    Column("custom_rules", Text, nullable=False, server_default="[]"),
    Column("reference_guide_path", Text, nullable=True),
    Column("is_builtin", Boolean, nullable=False, server_default=text("false")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
