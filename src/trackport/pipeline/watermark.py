"""
Import watermark per environment.

The watermark is the update time of the most recently imported conversation
in an environment. Parse events at or before it were already back-filled by
an earlier import and must not produce new activity.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from trackport.db.repositories import ConversationRepository


def to_epoch_seconds(value: datetime) -> int:
    """Truncate a datetime to whole epoch seconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def latest_watermark(session: Session, env: str) -> int:
    """
    Get the import watermark for an environment.

    Args:
        session: Database session
        env: Environment tag

    Returns:
        Latest ``updated_at`` in ``env`` as epoch seconds, or 0 if none exists
    """
    latest = ConversationRepository(session).get_latest_updated(env)
    if latest is None:
        return 0
    return to_epoch_seconds(latest.updated_at)
