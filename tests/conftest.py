import pytest

from momo_auth.application.session_manager import SessionManager
from momo_auth.domain.events import IdentityEvents, SignedIn, SignedOut
from tests.fakes import (
    FakeAuthCodeStore,
    FakeClock,
    FakePhoneVerificationCache,
    FakeSessions,
    FakeUoW,
    RecordingSubscriber,
)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return FakeAuthCodeStore(clock)


@pytest.fixture()
def uow():
    return FakeUoW()


@pytest.fixture()
def phone_cache():
    return FakePhoneVerificationCache()


@pytest.fixture()
def recorder():
    return RecordingSubscriber()


@pytest.fixture()
def events(recorder):
    bus = IdentityEvents()
    bus.subscribe(SignedIn, recorder)
    bus.subscribe(SignedOut, recorder)
    return bus


@pytest.fixture()
def session_store():
    return FakeSessions()


@pytest.fixture()
def sessions(session_store, events):
    return SessionManager(session_store, events)


@pytest.fixture(autouse=True)
def patch_phone_code(monkeypatch):
    """
    Make the 6-digit phone code deterministic in all tests.
    Auth codes stay random; tests that need collisions patch them locally.
    """
    from momo_auth.domain import services as domain_services

    monkeypatch.setattr(domain_services, "generate_6digit_code", lambda: "123456")
    yield
