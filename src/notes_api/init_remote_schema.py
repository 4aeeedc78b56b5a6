"""
Utility script to create the remote 'notes' table.

The application itself never creates tables; run this once against a fresh
database. The script reads NOTES_REMOTE_URL / NOTES_REMOTE_KEY from the environment.

Usage:
    python -m notes_api.init_remote_schema

Exit codes:
- 0: table exists or was created
- 1: remote storage is not configured
- 2: remote client could not be constructed or the database rejected the DDL
"""
from __future__ import annotations

import logging
import sys

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import RemoteClient, metadata
from .logging_setup import configure_logging
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def init_schema(engine: Engine) -> None:
    """Create the notes table on `engine` if it does not exist."""
    metadata.create_all(engine, checkfirst=True)


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.remote_configured:
        logger.error("NOTES_REMOTE_URL and NOTES_REMOTE_KEY must both be set")
        return 1

    client = RemoteClient(settings.remote_url or "", settings.remote_key or "")
    engine = client.acquire()
    if engine is None:
        return 2
    try:
        init_schema(engine)
    except SQLAlchemyError as exc:
        logger.error("Failed to create remote schema: %s", exc)
        return 2
    finally:
        client.dispose()
    logger.info("Remote schema ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
