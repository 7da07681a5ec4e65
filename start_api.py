#!/usr/bin/env python3
"""Container entrypoint: wait for Postgres, migrate, seed, then exec uvicorn."""
import logging
import os
import sys

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.logging_config import configure_logging
from wait_for_db import wait_for_db

logger = logging.getLogger("start_api")


def migrate() -> None:
    cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(cfg, "head")
    logger.info("migrations applied")


def seed() -> None:
    # fresh engine: the app engine may have been created before the tables existed
    from app.seed import run

    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    try:
        run(sessionmaker(bind=engine, autocommit=False, autoflush=False)())
    finally:
        engine.dispose()


def main() -> None:
    configure_logging()
    wait_for_db(settings.DATABASE_URL, int(os.getenv("DB_WAIT_TIMEOUT", "60")))
    migrate()
    seed()
    port = os.getenv("PORT", "8000")
    logger.info("starting uvicorn on port %s", port)
    os.execv(sys.executable, [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port])


if __name__ == "__main__":
    main()
