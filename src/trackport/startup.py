"""
Startup dependency checks for Trackport.

Validates critical dependencies before the application starts serving requests.
Fails fast with clear, actionable error messages when requirements aren't met.
"""

import logging
import time
from typing import Optional

from sqlalchemy import text

from trackport.config import settings
from trackport.db.connection import SessionLocal

logger = logging.getLogger(__name__)


class StartupCheckError(Exception):
    """Raised when a critical startup check fails."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        error_msg = f"\n{'='*70}\nSTARTUP CHECK FAILED\n{'='*70}\n\n{self.message}\n"
        if self.hint:
            error_msg += f"\nHint: {self.hint}\n"
        error_msg += f"{'='*70}\n"
        return error_msg


def check_database_connection() -> None:
    """
    Verify the database is accessible and responsive.

    Raises:
        StartupCheckError: If database connection fails
    """
    try:
        with SessionLocal() as session:
            result = session.execute(text("SELECT 1")).scalar()
            if result != 1:
                raise StartupCheckError(
                    "Database query returned unexpected result",
                    "Database may be corrupted or misconfigured",
                )
    except StartupCheckError:
        raise
    except Exception as e:
        error_str = str(e).lower()
        if "connection refused" in error_str or "could not connect" in error_str:
            hint = (
                f"Is the database running on {settings.postgres_host}:"
                f"{settings.postgres_port}? Set DATABASE_URL to point elsewhere."
            )
        elif "authentication failed" in error_str or "password" in error_str:
            hint = "Check POSTGRES_USER and POSTGRES_PASSWORD."
        elif "does not exist" in error_str:
            hint = f"Create the database: createdb {settings.postgres_db}"
        else:
            hint = None
        raise StartupCheckError(f"Cannot connect to database: {e}", hint) from e


def run_all_startup_checks() -> None:
    """
    Run every startup check in order.

    Raises:
        StartupCheckError: On the first failing check
    """
    start = time.monotonic()
    check_database_connection()
    elapsed_ms = (time.monotonic() - start) * 1000
    logger.info(f"Database check passed in {elapsed_ms:.0f}ms")
