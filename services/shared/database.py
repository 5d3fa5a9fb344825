import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings


logger = logging.getLogger("database")

# Advisory lock ID for migration coordination across replicas
MIGRATION_LOCK_ID = 0x7374796C  # 'styl' in hex


def _engine_kwargs_for(url, settings: Optional[Settings] = None):
    kwargs = {"pool_pre_ping": True, "future": True}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in {"sqlite://", "sqlite+pysqlite://"}:
            kwargs["poolclass"] = StaticPool
        return kwargs

    if settings is None:
        return kwargs

    if settings.db_pool_size is not None:
        kwargs["pool_size"] = int(settings.db_pool_size)
    if settings.db_max_overflow is not None:
        kwargs["max_overflow"] = int(settings.db_max_overflow)
    if settings.db_pool_timeout_seconds is not None:
        kwargs["pool_timeout"] = int(settings.db_pool_timeout_seconds)
    if settings.db_pool_recycle_seconds is not None:
        kwargs["pool_recycle"] = int(settings.db_pool_recycle_seconds)
    return kwargs


def _build_alembic_config(database_url) -> AlembicConfig:
    """
    Build Alembic config with absolute paths

    Args:
        database_url (str): URL recorded as sqlalchemy.url

    Returns:
        Alembic Config
    """
    services_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    alembic_ini_path = os.path.join(services_dir, "alembic.ini")

    config = AlembicConfig(alembic_ini_path)
    config.set_main_option(
        "script_location",
        os.path.join(services_dir, "shared", "persistence", "alembic"),
    )
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


class Database:
    """
    Owns the SQLAlchemy engine and session factory for one process

    Handed to the API through `app.state.database`; request handlers reach it
    via the `get_session` dependency rather than a module-level engine
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
        self._migrations_applied = False

    @classmethod
    def from_url(cls, url, settings: Optional[Settings] = None) -> "Database":
        return cls(create_engine(url, **_engine_kwargs_for(url, settings)))

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls.from_url(settings.database_url, settings)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def apply_migrations(self) -> None:
        """
        Apply Alembic migrations up to head

        Uses a PostgreSQL advisory lock so only one replica migrates at a
        time; the migration runs on this database's own connection

        Returns:
            None
        """
        if self._migrations_applied:
            logger.debug("Migrations already applied in this process")
            return

        logger.info("Applying database migrations")
        alembic_config = _build_alembic_config(self.engine.url.render_as_string(hide_password=False))
        alembic_config.attributes["configure_logger"] = False

        try:
            with self.engine.begin() as conn:
                if self.dialect_name == "postgresql":
                    logger.debug("Acquiring transaction advisory lock %s", MIGRATION_LOCK_ID)
                    conn.execute(
                        text("SELECT pg_advisory_xact_lock(:lock_id)"),
                        {"lock_id": MIGRATION_LOCK_ID},
                    )

                alembic_config.attributes["connection"] = conn
                command.upgrade(alembic_config, "head")

            self._migrations_applied = True
            logger.info("Database migrations completed successfully")
        except Exception:
            logger.exception("Database migration failed")
            raise

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager for imperative code paths (startup, scripts)

        Commits on success, rolls back on any exception

        Returns:
            SQLAlchemy Session
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        with self.session() as session:
            session.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()
