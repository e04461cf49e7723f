"""
Aleya Shop Back Office Entry Point.

Bootstraps the dependency graph via constructor injection and initialises
the local SQLite schema.  Every subsystem is wired here; no module-level
globals.  The web front end imports :func:`bootstrap`; running the module
directly prepares the local database and reports the store mode.

Usage::

    python main.py
"""

from __future__ import annotations

import atexit
import sys
from pathlib import Path
from typing import Optional

from aleya.config import AppConfig, get_config
from aleya.database import DatabaseManager
from aleya.logger import StructuredLogger, get_logger
from aleya.schema import initialize_schema
from aleya.services import ServiceContainer, create_services


def bootstrap(
    config: Optional[AppConfig] = None,
) -> tuple[DatabaseManager, ServiceContainer]:
    """Wire configuration, database, schema and services."""
    config = config or get_config()

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.supabase_key(),
        sqlite_path=Path(config.SQLITE_PATH),
        logger=StructuredLogger(name="database", log_file=config.LOG_FILE),
    )
    # DatabaseManager.close() is safe to call more than once.
    atexit.register(db.close)

    initialize_schema(db.sqlite, StructuredLogger(name="schema", log_file=config.LOG_FILE))

    services = create_services(
        db=db,
        config=config,
        logger=StructuredLogger(name="services", log_file=config.LOG_FILE),
    )
    return db, services


def main() -> None:
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Aleya Shop back office...")

    db, _services = bootstrap()
    try:
        mode = "online (Supabase)" if db.is_online else "standalone (SQLite)"
        logger.info("Back office ready; store mode: %s.", mode)
    finally:
        db.close()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n")
        sys.exit(1)
