from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import psycopg

from momo_auth.logging import setup_logging
from momo_auth.settings import get_settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
MIGRATIONS_DIR = Path(os.environ.get("MIGRATIONS_DIR", PROJECT_ROOT / "migrations"))
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def list_migrations(directory: Path = MIGRATIONS_DIR) -> list[Path]:
    if not directory.exists():
        raise FileNotFoundError(f"migrations dir not found: {directory}")
    return sorted(directory.glob("*.sql"))


def applied_versions(conn: psycopg.Connection) -> dict[str, datetime]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version, applied_at FROM schema_migrations ORDER BY version;")
        rows = cur.fetchall()
    conn.commit()
    return {version: at for version, at in rows}


def pending_migrations(conn: psycopg.Connection, directory: Path = MIGRATIONS_DIR) -> list[Path]:
    done = applied_versions(conn)
    return [p for p in list_migrations(directory) if p.stem not in done]


def apply_one(conn: psycopg.Connection, path: Path) -> None:
    """Run one migration file and record it, in a single transaction."""
    version = path.stem
    with conn.transaction():
        with conn.cursor() as cur:
            cur.execute(path.read_text(encoding="utf-8"))
            cur.execute(
                "INSERT INTO schema_migrations (version, applied_at) VALUES (%s, now());",
                (version,),
            )
    logger.info("migration applied", extra={"version": version})


def cmd_up() -> int:
    with psycopg.connect(get_settings().database_url) as conn:
        to_run = pending_migrations(conn)
        if not to_run:
            logger.info("no pending migrations")
            return 0
        for path in to_run:
            try:
                apply_one(conn, path)
            except psycopg.Error:
                logger.exception("migration failed", extra={"version": path.stem})
                return 1
    return 0


def cmd_status() -> int:
    with psycopg.connect(get_settings().database_url) as conn:
        done = applied_versions(conn)
    print("=== Applied ===")
    for version, at in done.items():
        print(f"{version} @ {at.isoformat()}")
    print("=== Pending ===")
    for path in list_migrations():
        if path.stem not in done:
            print(path.stem)
    return 0


def cmd_new(name: str) -> int:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    path = MIGRATIONS_DIR / f"{ts}_{name}.sql"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- write your SQL here\n", encoding="utf-8")
    print(str(path))
    return 0


def main(argv: list[str]) -> int:
    setup_logging(get_settings().log_level, service="momo-auth-migrate")
    usage = "usage: python -m momo_auth.infrastructure.db.migrate [up|status|new <name>]"
    if len(argv) < 2:
        print(usage, file=sys.stderr)
        return 2
    cmd = argv[1]
    if cmd == "up":
        return cmd_up()
    if cmd == "status":
        return cmd_status()
    if cmd == "new" and len(argv) >= 3:
        return cmd_new(argv[2])
    print(usage, file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
