from __future__ import annotations

from types import TracebackType
from typing import Protocol, Type

from momo_auth.domain.ports.outbox_repository import OutboxRepositoryPort
from momo_auth.domain.ports.user_repository import UserRepositoryPort


class UnitOfWorkPort(Protocol):
    """
    One database transaction, used as ``async with uow as tx``.

    Repositories hang off the context (``tx.db_users``, ``tx.outbox``) and
    share its connection. Work is kept only if ``tx.commit()`` is called before
    the block exits; leaving early, or by exception, rolls it back, so the
    outbox row for a phone code only lands when the whole request succeeds.
    """

    db_users: UserRepositoryPort
    outbox: OutboxRepositoryPort

    async def __aenter__(self) -> "UnitOfWorkPort": ...

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
