from __future__ import annotations

from typing import Optional, Sequence

import psycopg

from momo_auth.domain.entities import User
from momo_auth.domain.ports.user_repository import UserRepositoryPort

_COLUMNS = "id, firebase_uid, email, name, phone, role, auth_provider"


def _to_user(row: Sequence) -> User:
    id_, firebase_uid, email, name, phone, role, auth_provider = row
    return User(
        id=str(id_),
        firebase_uid=firebase_uid,
        email=email,
        name=name,
        phone=phone,
        role=role,
        auth_provider=auth_provider,
    )


class PgUserRepository(UserRepositoryPort):
    """
    Postgres implementation of UserRepositoryPort.

    NOTE:
    - This repo is constructed with an *active async connection* supplied by the UoW.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def get_or_create_by_firebase_uid(
        self, firebase_uid: str, email: str | None, name: str | None
    ) -> User:
        sql = f"""
        WITH ins AS (
        INSERT INTO users (firebase_uid, email, name, auth_provider)
        VALUES (%s, LOWER(TRIM(%s)), %s, 'firebase')
        ON CONFLICT (firebase_uid) DO NOTHING
        RETURNING {_COLUMNS}
        )
        SELECT {_COLUMNS} FROM ins
        UNION ALL
        SELECT {_COLUMNS} FROM users
        WHERE firebase_uid = %s AND NOT EXISTS (SELECT 1 FROM ins)
        LIMIT 1;
        """
        default_email = email or f"{firebase_uid}@firebase.local"
        default_name = name or "User"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (firebase_uid, default_email, default_name, firebase_uid))
            row = await cur.fetchone()

        if not row:
            row = await self._reselect("firebase_uid", firebase_uid)
        return _to_user(row)

    async def get_or_create_by_phone(self, phone: str) -> User:
        sql = f"""
        WITH ins AS (
        INSERT INTO users (phone, auth_provider)
        VALUES (%s, 'phone')
        ON CONFLICT (phone) DO NOTHING
        RETURNING {_COLUMNS}
        )
        SELECT {_COLUMNS} FROM ins
        UNION ALL
        SELECT {_COLUMNS} FROM users
        WHERE phone = %s AND NOT EXISTS (SELECT 1 FROM ins)
        LIMIT 1;
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (phone, phone))
            row = await cur.fetchone()

        if not row:
            row = await self._reselect("phone", phone)
        return _to_user(row)

    async def _reselect(self, column: str, value: str) -> Sequence:
        """
        A concurrent sign-in inserted the same user after this statement took
        its snapshot: the INSERT did nothing and the fallback SELECT saw no
        row. A new statement gets a new snapshot and sees the committed row.
        """
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {column} = %s", (value,)
            )
            row = await cur.fetchone()
        if not row:
            raise RuntimeError(f"user by {column} vanished during get-or-create")
        return row

    async def get_by_id(self, user_id: str) -> Optional[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE id = %s"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (user_id,))
            row = await cur.fetchone()
        return _to_user(row) if row else None
