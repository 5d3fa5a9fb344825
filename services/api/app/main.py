import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.shared.builtin_profiles import seed_builtin_profiles
from services.shared.caching import create_redis_client
from services.shared.config import Settings, load_settings, validate_config
from services.shared.database import Database
from services.shared.sessions import SessionStore

from .routers import auth, dev, profiles


logger = logging.getLogger("api")

SERVICE_NAME = "stylecheck-api"


def _validation_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg") or "invalid value"
    return f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database: Database = app.state.database

    validate_config(settings)

    if settings.run_db_migrations:
        database.apply_migrations()
    else:
        logger.debug("RUN_DB_MIGRATIONS is disabled; skipping migrations")

    if settings.seed_builtin_profiles:
        with database.session() as session:
            seed_builtin_profiles(session)

    yield


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    redis_client=None,
) -> FastAPI:
    """
    Build the API application

    Collaborators not supplied are built from settings; nothing connects
    until the first request or the lifespan hook runs

    Args:
        settings (Settings): Defaults to `load_settings()`
        database (Database): Defaults to one built from settings
        redis_client: Defaults to a client for settings.redis_url

    Returns:
        FastAPI app
    """
    settings = settings or load_settings()
    database = database or Database.from_settings(settings)
    if redis_client is None:
        redis_client = create_redis_client(settings.redis_url)

    app = FastAPI(
        title="StyleCheck API",
        version=settings.service_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.redis = redis_client
    app.state.session_store = SessionStore(
        redis_client,
        ttl_seconds=settings.session_ttl_seconds,
        key_prefix=settings.session_key_prefix,
    )

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(_request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(_request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_error_message(exc)})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled error method=%s path=%s error=%s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/")
    def root() -> Dict[str, Any]:
        return {"status": "ok", "service": SERVICE_NAME, "version": app.version}

    @app.get("/version")
    def version():
        return {"version": app.version}

    @app.get("/health")
    def health():
        """
        Health check: verifies DB and Redis connectivity

        Returns:
            Dict with status, timestamp, and per-dependency booleans
        """
        database_ok = False
        redis_ok = False

        try:
            database_ok = app.state.database.ping()
        except Exception as exc:
            logger.error("health: database check failed error=%s msg=%s", type(exc).__name__, str(exc))

        try:
            redis_ok = bool(app.state.redis.ping())
        except Exception as exc:
            logger.error("health: redis check failed error=%s msg=%s", type(exc).__name__, str(exc))

        healthy = bool(database_ok and redis_ok)
        payload = {
            "status": "healthy" if healthy else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "database": database_ok,
            "redis": redis_ok,
        }
        return JSONResponse(status_code=200 if healthy else 503, content=payload)

    app.include_router(profiles.router)
    app.include_router(auth.router)
    app.include_router(dev.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=str(os.getenv("LOG_LEVEL", "INFO")).upper())

    port = int(os.getenv("PORT", "8000"))
    host = str(os.getenv("API_BIND_HOST", "0.0.0.0")).strip() or "0.0.0.0"

    uvicorn.run(app, host=host, port=port)
