"""
Conversation batch validation.

Splits an incoming batch into conversations eligible for storage and
conversations rejected for the report. Only the envelope is checked; tracker
contents are stored as received.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Collection, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

# Envelope keys mapped onto Conversation columns; everything else goes to extra_data
ENVELOPE_KEYS = {"_id", "projectId", "tracker", "status", "env", "createdAt", "updatedAt"}


@dataclass
class ConversationDraft:
    """A validated conversation ready to be upserted."""

    id: str
    project_id: str
    env: str
    tracker: Any
    created_at: datetime
    updated_at: datetime
    status: Optional[str] = None
    extra_data: dict = field(default_factory=dict)


@dataclass
class ValidationResult:
    """Outcome of validating one batch."""

    eligible: list[ConversationDraft] = field(default_factory=list)
    rejected: list[Any] = field(default_factory=list)


def parse_created_at(value: Any) -> Optional[datetime]:
    """
    Parse an exporter-supplied creation time.

    Accepts datetimes, ISO-8601 strings and epoch milliseconds. Returns None
    when the value is missing or unparseable.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, Real) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value:
        try:
            parsed = date_parser.isoparse(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def is_eligible(raw: Any, known_project_ids: Collection[str]) -> bool:
    """A conversation is storable iff it has an id and a known project."""
    if not isinstance(raw, dict):
        return False
    project_id = raw.get("projectId")
    return (
        raw.get("_id") is not None
        and isinstance(project_id, str)
        and project_id in known_project_ids
    )


def validate_conversations(
    raw_conversations: list,
    env: str,
    known_project_ids: Collection[str],
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Filter a batch into eligible drafts and rejected raw conversations.

    Args:
        raw_conversations: Conversations as sent by the exporter
        env: Environment tag to stamp on eligible conversations
        known_project_ids: Ids of existing projects
        now: Import time (defaults to the current UTC time)

    Returns:
        ValidationResult; ``rejected`` keeps input order and original objects
    """
    now = now or datetime.now(timezone.utc)
    known = set(known_project_ids)
    result = ValidationResult()

    for raw in raw_conversations:
        if not is_eligible(raw, known):
            result.rejected.append(raw)
            continue

        # Missing creation time falls back to the import time
        created_at = parse_created_at(raw.get("createdAt")) or now
        status = raw.get("status")
        result.eligible.append(
            ConversationDraft(
                id=str(raw["_id"]),
                project_id=raw["projectId"],
                env=env,
                tracker=raw.get("tracker", {}),
                created_at=created_at,
                updated_at=now,
                status=status if isinstance(status, str) else None,
                extra_data={k: v for k, v in raw.items() if k not in ENVELOPE_KEYS},
            )
        )

    if result.rejected:
        logger.warning(
            f"Rejected {len(result.rejected)} of {len(raw_conversations)} "
            f"conversations (missing _id or unknown projectId)"
        )
    return result
