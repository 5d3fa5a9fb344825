import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from fastapi.testclient import TestClient  # noqa: E402

from services.shared.config import Settings  # noqa: E402
from services.shared.database import Database  # noqa: E402
from services.shared.users import upsert_github_user  # noqa: E402


class FakeRedis:
    def __init__(self):
        self._values = {}
        self.ttls = {}
        self.ping_error = None

    def setex(self, key, ttl_seconds, value):
        self._values[key] = value
        self.ttls[key] = ttl_seconds
        return True

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self._values:
            return False
        self._values[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        return self._values.get(key)

    def delete(self, key):
        existed = key in self._values
        self._values.pop(key, None)
        self.ttls.pop(key, None)
        return 1 if existed else 0

    def ping(self):
        if self.ping_error is not None:
            raise self.ping_error
        return True


def build_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "redis_url": "redis://localhost:6379/15",
        "environment": "development",
        "github_client_id": "test-client-id",
        "github_client_secret": "test-client-secret",
        "github_callback_url": "http://localhost:8000/auth/callback",
        "frontend_url": "http://localhost:3000",
        "cors_origins": ["http://localhost:3000"],
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def _isolate_test_env(monkeypatch):
    """
    Ensure tests don't depend on developer shell env vars
    """
    for key in (
        "API_URL",
        "ENVIRONMENT",
        "FRONTEND_URL",
        "CORS_ORIGINS",
        "GITHUB_CALLBACK_URL",
        "STYLECHECK_SESSION_FILE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def database():
    db = Database.from_url("sqlite://")
    db.apply_migrations()
    yield db
    db.dispose()


@pytest.fixture()
def settings():
    return build_settings()


@pytest.fixture()
def settings_factory():
    return build_settings


@pytest.fixture()
def make_api_client(database, fake_redis):
    """
    Build TestClients over the shared in-memory database and fake Redis

    Lifespan runs on enter, so built-in profiles are seeded
    """
    from services.api.app.main import create_app

    clients = []

    def _make(settings=None, raise_server_exceptions=True):
        app = create_app(settings=settings or build_settings(), database=database, redis_client=fake_redis)
        client = TestClient(app, raise_server_exceptions=raise_server_exceptions)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture()
def api_client(make_api_client, settings):
    return make_api_client(settings)


@pytest.fixture()
def login_as(api_client, database):
    """
    Mint a session for a GitHub user directly through the session store

    Returns:
        callable(github_id, login) -> session_id
    """

    def _login(github_id=4242, login="octocat"):
        store = api_client.app.state.session_store
        with database.session() as session:
            user_id = upsert_github_user(session, {"id": github_id, "login": login}, "gho_test_token")
            record = store.create(session, user_id, login)
        return record.session_id

    return _login
