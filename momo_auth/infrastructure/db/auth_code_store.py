from __future__ import annotations

from datetime import datetime

from psycopg_pool import AsyncConnectionPool

from momo_auth.domain.entities import AuthCode
from momo_auth.domain.errors import AuthCodeNotFound, DuplicateCode
from momo_auth.domain.ports.auth_code_store import AuthCodeStorePort


class PgAuthCodeStore(AuthCodeStorePort):
    """
    Postgres implementation of AuthCodeStorePort.

    Unlike the repositories, every call runs in its own short transaction on a
    pooled connection: codes are written and consumed outside any UoW.
    Expired rows are removed by purge_expired(), driven by the sweeper worker.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def put(self, record: AuthCode) -> None:
        # An expired leftover with the same code is overwritten; a live one
        # makes the WHERE fail, so nothing is returned.
        sql = """
        INSERT INTO auth_codes (code, user_id, expires_at, created_at)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (code) DO UPDATE
            SET user_id = EXCLUDED.user_id,
                expires_at = EXCLUDED.expires_at,
                created_at = EXCLUDED.created_at
            WHERE auth_codes.expires_at <= EXCLUDED.created_at
        RETURNING code
        """
        async with self._pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        sql,
                        (
                            record.code,
                            record.user_id,
                            record.expires_at,
                            record.created_at,
                        ),
                    )
                    row = await cur.fetchone()
        if row is None:
            raise DuplicateCode(record.code)

    async def get(self, code: str, now: datetime) -> AuthCode:
        sql = """
        SELECT code, user_id, expires_at, created_at
        FROM auth_codes
        WHERE code = %s AND expires_at > %s
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (code, now))
                row = await cur.fetchone()
        if row is None:
            raise AuthCodeNotFound(code)
        return self._record(row)

    async def delete_by_code(self, code: str) -> None:
        async with self._pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute("DELETE FROM auth_codes WHERE code = %s", (code,))

    async def take(self, code: str) -> AuthCode:
        # Concurrent DELETEs of the same row serialize on the row lock; the
        # losers see zero rows.
        sql = """
        DELETE FROM auth_codes
        WHERE code = %s
        RETURNING code, user_id, expires_at, created_at
        """
        async with self._pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(sql, (code,))
                    row = await cur.fetchone()
        if row is None:
            raise AuthCodeNotFound(code)
        return self._record(row)

    async def purge_expired(self, now: datetime) -> int:
        async with self._pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        "DELETE FROM auth_codes WHERE expires_at <= %s", (now,)
                    )
                    return cur.rowcount

    @staticmethod
    def _record(row) -> AuthCode:
        code, user_id, expires_at, created_at = row
        return AuthCode(
            code=str(code),
            user_id=str(user_id),
            expires_at=expires_at,
            created_at=created_at,
        )
