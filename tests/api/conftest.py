import pytest
from fastapi.testclient import TestClient

from momo_auth.main import create_app
from momo_auth.presentation.dependencies import (
    get_app_settings,
    get_auth_code_store,
    get_clock,
    get_phone_verification_cache,
    get_session_store,
    get_uow,
)
from momo_auth.presentation.rate_limiting import limiter
from momo_auth.settings import Settings
from tests.fakes import (
    FakeAuthCodeStore,
    FakeClock,
    FakePhoneVerificationCache,
    FakeSessions,
    FakeUoW,
)


class Deps:
    def __init__(self) -> None:
        self.settings = Settings(app_env="dev")
        self.clock = FakeClock()
        self.uow = FakeUoW()
        self.store = FakeAuthCodeStore(self.clock)
        self.phone_cache = FakePhoneVerificationCache()
        self.sessions = FakeSessions()


@pytest.fixture(autouse=True)
def no_rate_limits():
    """Limits are off unless a test asks for `rate_limited`; counters start empty."""
    enabled = limiter.enabled
    limiter.reset()
    limiter.enabled = False
    yield
    limiter.enabled = enabled
    limiter.reset()


@pytest.fixture()
def rate_limited(no_rate_limits):
    limiter.enabled = True


@pytest.fixture()
def deps():
    return Deps()


@pytest.fixture()
def app(deps):
    app = create_app()
    app.dependency_overrides[get_app_settings] = lambda: deps.settings
    app.dependency_overrides[get_uow] = lambda: deps.uow
    app.dependency_overrides[get_auth_code_store] = lambda: deps.store
    app.dependency_overrides[get_phone_verification_cache] = lambda: deps.phone_cache
    app.dependency_overrides[get_session_store] = lambda: deps.sessions
    app.dependency_overrides[get_clock] = lambda: deps.clock
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def mobile_code(client: TestClient, **overrides):
    body = {
        "firebase_uid": "fb-123",
        "email": "ann@example.com",
        "name": "Ann",
        "redirect_uri": "sherpamomo://auth",
    }
    body.update(overrides)
    return client.post("/v1/auth/mobile-code", json=body)
