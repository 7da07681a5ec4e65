"""Block until the configured Postgres accepts connections (container start-up)."""
import logging
import os
import time
from urllib.parse import urlparse

import psycopg2

logger = logging.getLogger("wait_for_db")


def _dsn(database_url: str) -> dict:
    # psycopg2 wants a plain postgresql:// URL, not a SQLAlchemy driver URL
    for prefix in ("postgresql+psycopg2://", "postgres://"):
        if database_url.startswith(prefix):
            database_url = "postgresql://" + database_url[len(prefix):]
    p = urlparse(database_url)
    return {
        "host": p.hostname or "db",
        "port": p.port or 5432,
        "user": p.username or "tours",
        "password": p.password or "tours",
        "dbname": (p.path or "/tours").lstrip("/") or "tours",
    }


def wait_for_db(database_url: str, timeout_s: int = 60, interval_s: float = 1.0) -> None:
    if database_url.startswith("sqlite"):
        return
    dsn = _dsn(database_url)
    logger.info("waiting for postgres at %s:%s db=%s (timeout %ss)", dsn["host"], dsn["port"], dsn["dbname"], timeout_s)
    deadline = time.monotonic() + timeout_s
    while True:
        try:
            psycopg2.connect(**dsn).close()
        except psycopg2.OperationalError as e:
            if time.monotonic() > deadline:
                logger.error("timed out waiting for postgres: %s", e)
                raise
            time.sleep(interval_s)
            continue
        logger.info("postgres is ready")
        return


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s]: %(message)s")
    url = os.getenv("DATABASE_URL")
    if not url:
        raise SystemExit("DATABASE_URL is not set")
    wait_for_db(url, int(os.getenv("DB_WAIT_TIMEOUT", "60")))
