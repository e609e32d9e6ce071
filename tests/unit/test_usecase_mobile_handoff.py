import pytest

from momo_auth.application.mobile_handoff import (
    complete_mobile_handoff,
    start_mobile_handoff,
)
from momo_auth.domain.errors import (
    InvalidOrExpiredCode,
    InvalidRedirectUri,
    MissingFirebaseUid,
    UserNotFound,
)
from momo_auth.domain.events import SignedIn

SCHEMES = ["sherpamomo://", "exp://"]


async def _start(uow, store, clock, **overrides):
    kwargs = dict(
        uow=uow,
        code_store=store,
        firebase_uid="fb-123",
        redirect_uri="  sherpamomo://auth  ",
        allowed_schemes=SCHEMES,
        code_ttl_seconds=300,
        clock=clock,
    )
    kwargs.update(overrides)
    return await start_mobile_handoff(**kwargs)


async def test_start_creates_user_and_issues_code(uow, store, clock):
    record, redirect_uri = await _start(uow, store, clock, email="A@B.com", name="Ann")

    assert redirect_uri == "sherpamomo://auth"
    user = await uow.db_users.get_by_id(record.user_id)
    assert user.firebase_uid == "fb-123"
    assert user.email == "a@b.com"
    assert user.name == "Ann"
    assert uow.committed is True
    assert store.records[record.code] == record


async def test_start_defaults_email_and_name(uow, store, clock):
    record, _ = await _start(uow, store, clock)

    user = await uow.db_users.get_by_id(record.user_id)
    assert user.email == "fb-123@firebase.local"
    assert user.name == "User"


async def test_start_reuses_existing_user(uow, store, clock):
    first, _ = await _start(uow, store, clock)
    second, _ = await _start(uow, store, clock)

    assert first.user_id == second.user_id
    assert first.code != second.code


async def test_start_rejects_foreign_redirect(uow, store, clock):
    with pytest.raises(InvalidRedirectUri):
        await _start(uow, store, clock, redirect_uri="https://evil.example/cb")

    assert uow.db_users.by_id == {}
    assert store.records == {}


async def test_start_requires_firebase_uid(uow, store, clock):
    with pytest.raises(MissingFirebaseUid):
        await _start(uow, store, clock, firebase_uid="   ")
    assert store.records == {}


async def test_complete_exchanges_code_for_session(
    uow, store, clock, sessions, session_store, recorder
):
    record, _ = await _start(uow, store, clock)

    user, session = await complete_mobile_handoff(
        uow=uow, code_store=store, sessions=sessions, code=record.code, clock=clock
    )

    assert user.id == record.user_id
    assert session.user_id == user.id
    assert session.method == "mobile_code"
    assert await session_store.get(session.token) == session
    assert recorder.events == [SignedIn(user_id=user.id, method="mobile_code")]


async def test_complete_twice_fails_second_time(uow, store, clock, sessions):
    record, _ = await _start(uow, store, clock)
    await complete_mobile_handoff(
        uow=uow, code_store=store, sessions=sessions, code=record.code, clock=clock
    )

    with pytest.raises(InvalidOrExpiredCode):
        await complete_mobile_handoff(
            uow=uow, code_store=store, sessions=sessions, code=record.code, clock=clock
        )


async def test_complete_after_expiry_fails(uow, store, clock, sessions, recorder):
    record, _ = await _start(uow, store, clock)
    clock.advance(301)

    with pytest.raises(InvalidOrExpiredCode):
        await complete_mobile_handoff(
            uow=uow, code_store=store, sessions=sessions, code=record.code, clock=clock
        )
    assert recorder.events == []


async def test_complete_with_dangling_user_consumes_code(uow, store, clock, sessions):
    record, _ = await _start(uow, store, clock)
    uow.db_users.by_id.clear()

    with pytest.raises(UserNotFound):
        await complete_mobile_handoff(
            uow=uow, code_store=store, sessions=sessions, code=record.code, clock=clock
        )
    assert record.code not in store.records
