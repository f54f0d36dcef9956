# src/roadwatch/scripts/ensure_db.py
"""Create the configured Postgres database if it does not exist yet."""
from __future__ import annotations

import argparse
import logging
import sys

import psycopg
from psycopg import sql
from sqlalchemy.engine import URL, make_url

from roadwatch.core.logging import configure_logging
from roadwatch.core.settings import settings

logger = logging.getLogger(__name__)

MAINTENANCE_DB = "postgres"


def split_database_url(db_url: str) -> tuple[str, str]:
    """Return ``(maintenance_dsn, target_db)`` for a SQLAlchemy database URL.

    Driver suffixes such as ``postgresql+psycopg`` are dropped so the DSN
    can be handed straight to psycopg.

    Raises:
        ValueError: If the URL is not a Postgres URL.
    """
    url: URL = make_url(db_url.strip().strip("'\""))
    if url.get_backend_name() != "postgresql":
        raise ValueError(f"Not a Postgres URL: {url.render_as_string(hide_password=True)}")
    target_db = url.database or MAINTENANCE_DB
    maintenance = url.set(drivername="postgresql", database=MAINTENANCE_DB)
    return maintenance.render_as_string(hide_password=False), target_db


def ensure_database_exists(db_url: str) -> bool:
    """Create the target database; return True if it had to be created."""
    admin_dsn, target_db = split_database_url(db_url)
    with psycopg.connect(admin_dsn, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", target_db)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
    logger.info("Created database %s", target_db)
    return True


def main() -> None:
    configure_logging()
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    args = parser.parse_args()

    try:
        ensure_database_exists(args.url or settings.database_url_sync)
    except (ValueError, psycopg.Error) as exc:
        logger.error("ensure_db failed: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
