from datetime import timedelta

import pytest

from momo_auth.application.issue_auth_code import issue_auth_code
from momo_auth.domain import services as domain_services
from momo_auth.domain.entities import AuthCode
from momo_auth.domain.errors import GenerationFailed
from tests.fakes import FakeErroredAuthCodeStore


def _codes(monkeypatch, *values):
    it = iter(values)
    monkeypatch.setattr(domain_services, "generate_auth_code", lambda: next(it))


async def _seed_live(store, clock, code: str) -> None:
    await store.put(
        AuthCode(
            code=code,
            user_id="someone-else",
            expires_at=clock() + timedelta(seconds=300),
            created_at=clock(),
        )
    )


async def test_issue_persists_record_with_ttl(store, clock):
    record = await issue_auth_code(store, "u1", ttl_seconds=300, clock=clock)

    assert store.records[record.code] == record
    assert record.user_id == "u1"
    assert record.created_at == clock()
    assert record.expires_at == clock() + timedelta(seconds=300)
    assert len(record.code) == 32


async def test_collision_is_retried_with_a_new_code(store, clock, monkeypatch):
    await _seed_live(store, clock, "dup")
    _codes(monkeypatch, "dup", "dup", "fresh")

    record = await issue_auth_code(store, "u1", clock=clock)

    assert record.code == "fresh"
    assert store.put_calls == ["dup", "dup", "dup", "fresh"]
    assert store.records["dup"].user_id == "someone-else"


async def test_retries_are_bounded_by_attempts(store, clock, monkeypatch):
    await _seed_live(store, clock, "dup")
    monkeypatch.setattr(domain_services, "generate_auth_code", lambda: "dup")

    with pytest.raises(GenerationFailed):
        await issue_auth_code(store, "u1", clock=clock, max_attempts=3)

    # seed + 3 attempts, and only the seeded record exists
    assert len(store.put_calls) == 4
    assert list(store.records) == ["dup"]


async def test_retries_are_bounded_by_time(store, clock, monkeypatch):
    await _seed_live(store, clock, "dup")
    monkeypatch.setattr(domain_services, "generate_auth_code", lambda: "dup")

    with pytest.raises(GenerationFailed):
        await issue_auth_code(
            store, "u1", clock=clock, max_attempts=100, time_budget_seconds=0
        )

    assert len(store.put_calls) == 2


async def test_expired_leftover_with_same_code_is_replaced(store, clock, monkeypatch):
    await _seed_live(store, clock, "old")
    clock.advance(301)
    _codes(monkeypatch, "old")

    record = await issue_auth_code(store, "u1", clock=clock)

    assert record.code == "old"
    assert store.records["old"].user_id == "u1"


async def test_storage_errors_propagate_unchanged(clock):
    with pytest.raises(RuntimeError, match="Redis down"):
        await issue_auth_code(FakeErroredAuthCodeStore(clock), "u1", clock=clock)


@pytest.mark.parametrize("user_id, ttl", [("", 300), ("u1", 0)])
async def test_rejects_bad_arguments(store, clock, user_id, ttl):
    with pytest.raises(ValueError):
        await issue_auth_code(store, user_id, ttl_seconds=ttl, clock=clock)
    assert store.records == {}


async def test_issuing_in_a_loop_never_duplicates_live_codes(store, clock):
    codes = [
        (await issue_auth_code(store, f"u{i}", clock=clock)).code for i in range(200)
    ]
    assert len(set(codes)) == 200
    assert len(store.records) == 200
