"""
Store writes performed by import units.

Each write runs in its own session scope and reports failure as a value, so
one failing conversation never aborts its siblings. A conversation upsert and
its activity back-fill are independent commits: either may succeed while the
other fails.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from trackport.db.connection import SessionFactory
from trackport.db.repositories import ActivityRepository, ConversationRepository
from trackport.models.tracker import ActivityDraft
from trackport.pipeline.validation import ConversationDraft

logger = logging.getLogger(__name__)

UPSERT = "upsert"
ACTIVITY_INSERT = "activity_insert"


@dataclass(frozen=True)
class WriteFailure:
    """A store write that failed for one conversation."""

    conversation_id: str
    operation: str
    error: str

    def to_dict(self) -> dict:
        return {
            "conversation_id": self.conversation_id,
            "operation": self.operation,
            "error": self.error,
        }


def store_conversation(
    session_factory: SessionFactory, draft: ConversationDraft
) -> WriteFailure | None:
    """
    Upsert one conversation.

    Returns:
        WriteFailure if the store rejected the write, else None
    """
    try:
        with session_factory() as session:
            ConversationRepository(session).upsert(
                id=draft.id,
                project_id=draft.project_id,
                env=draft.env,
                tracker=draft.tracker,
                created_at=draft.created_at,
                updated_at=draft.updated_at,
                status=draft.status,
                extra_data=draft.extra_data,
            )
    except SQLAlchemyError as e:
        logger.error(f"Upsert failed for conversation {draft.id}: {e}")
        return WriteFailure(draft.id, UPSERT, f"{type(e).__name__}: {e}")
    return None


def write_activity_batch(
    session_factory: SessionFactory,
    conversation_id: str,
    drafts: list[ActivityDraft],
) -> WriteFailure | None:
    """
    Insert the activity drafts of one conversation in a single bulk insert.

    Returns:
        WriteFailure if the store rejected the insert, else None
    """
    if not drafts:
        return None
    try:
        with session_factory() as session:
            ActivityRepository(session).bulk_create([d.to_row() for d in drafts])
    except SQLAlchemyError as e:
        logger.error(
            f"Activity insert failed for conversation {conversation_id} "
            f"({len(drafts)} rows): {e}"
        )
        return WriteFailure(conversation_id, ACTIVITY_INSERT, f"{type(e).__name__}: {e}")
    return None
