import asyncio

import pytest

from momo_auth.application.issue_auth_code import issue_auth_code
from momo_auth.application.redeem_auth_code import redeem_auth_code
from momo_auth.domain.errors import InvalidOrExpiredCode


async def test_redeem_right_after_issue_returns_user(store, clock):
    record = await issue_auth_code(store, "u1", ttl_seconds=300, clock=clock)

    assert await redeem_auth_code(store, record.code, clock=clock) == "u1"
    assert record.code not in store.records


async def test_second_redeem_fails(store, clock):
    record = await issue_auth_code(store, "u1", ttl_seconds=300, clock=clock)
    await redeem_auth_code(store, record.code, clock=clock)

    with pytest.raises(InvalidOrExpiredCode):
        await redeem_auth_code(store, record.code, clock=clock)


async def test_redeem_after_ttl_fails_without_sweep(store, clock):
    record = await issue_auth_code(store, "u1", ttl_seconds=300, clock=clock)
    clock.advance(301)

    with pytest.raises(InvalidOrExpiredCode):
        await redeem_auth_code(store, record.code, clock=clock)
    # lazily purged by the failed redemption
    assert record.code not in store.records


async def test_redeem_after_ttl_fails_after_sweep(store, clock):
    record = await issue_auth_code(store, "u1", ttl_seconds=300, clock=clock)
    clock.advance(301)
    assert await store.purge_expired(clock()) == 1

    with pytest.raises(InvalidOrExpiredCode):
        await redeem_auth_code(store, record.code, clock=clock)


async def test_redeem_just_before_expiry_succeeds(store, clock):
    record = await issue_auth_code(store, "u1", ttl_seconds=300, clock=clock)
    clock.advance(299)

    assert await redeem_auth_code(store, record.code, clock=clock) == "u1"


@pytest.mark.parametrize("code", ["", "   ", None, 1234])
async def test_blank_or_non_string_codes_are_rejected(store, clock, code):
    with pytest.raises(InvalidOrExpiredCode):
        await redeem_auth_code(store, code, clock=clock)


async def test_unknown_code_is_rejected(store, clock):
    with pytest.raises(InvalidOrExpiredCode):
        await redeem_auth_code(store, "f" * 32, clock=clock)


async def test_concurrent_redeems_yield_exactly_one_success(store, clock):
    record = await issue_auth_code(store, "u1", clock=clock)

    results = await asyncio.gather(
        *(redeem_auth_code(store, record.code, clock=clock) for _ in range(20)),
        return_exceptions=True,
    )

    successes = [r for r in results if r == "u1"]
    failures = [r for r in results if isinstance(r, InvalidOrExpiredCode)]
    assert len(successes) == 1
    assert len(failures) == 19


async def test_codes_are_independent(store, clock):
    a = await issue_auth_code(store, "u1", clock=clock)
    b = await issue_auth_code(store, "u2", clock=clock)

    assert await redeem_auth_code(store, b.code, clock=clock) == "u2"
    assert await redeem_auth_code(store, a.code, clock=clock) == "u1"
