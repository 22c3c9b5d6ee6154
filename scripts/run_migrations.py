#!/usr/bin/env python3
"""Apply database migrations.

Usage:
    python scripts/run_migrations.py            # upgrade to head
    python scripts/run_migrations.py <revision> # upgrade to a given revision
"""

import sys
import logfire
from alembic import command
from alembic.config import Config

from imguru.config import Settings
from imguru.util.logging import setup_logging
from imguru.util.observability import configure_logfire


def main(argv: list[str]) -> int:
    """Upgrade the schema, reporting failures to Logfire."""
    settings = Settings()
    setup_logging(settings)
    configure_logfire(settings)

    target = argv[1] if len(argv) > 1 else "head"

    try:
        logfire.info("Applying migrations", target=target)
        command.upgrade(Config("alembic.ini"), target)
        logfire.info("Migrations applied", target=target)
        return 0

    except Exception as e:
        logfire.error(
            "Migration failed",
            target=target,
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main(sys.argv))
