"""
Tracker API routes.

Per-conversation endpoints used by a running assistant: fetch the stored
tracker, create it, and append new events to it.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trackport.api.schemas import ConversationResponse, ErrorResponse
from trackport.config import settings
from trackport.db.connection import get_db
from trackport.db.repositories import ActivityRepository, ConversationRepository
from trackport.exceptions import TrackerConflictError
from trackport.pipeline.extraction import extract_utterances
from trackport.pipeline.resolution import build_model_index

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_MISMATCH_MESSAGE = "Project ID does not match the requested tracker."


def _last_events(tracker: Any, event_count: Optional[int]) -> Any:
    """Return a copy of the tracker keeping only its last ``event_count`` events."""
    if not isinstance(tracker, dict):
        return tracker
    trimmed = dict(tracker)
    events = tracker.get("events")
    if isinstance(events, list) and event_count is not None:
        start = max(len(events) - event_count, 0)
        trimmed["events"] = events[start:]
    return trimmed


def log_user_utterances(session: Session, project_id: str, events: list) -> int:
    """
    Add appended user utterances to the activity log.

    Runs in a savepoint so a logging failure never affects the tracker update.

    Returns:
        Number of activity rows written
    """
    index = build_model_index(session, project_ids=[project_id])
    extraction = extract_utterances(project_id, {"events": events}, None, index)
    if extraction.unresolved:
        logger.warning(
            f"Could not find model to log {len(extraction.unresolved)} "
            f"utterance(s) to for project {project_id}"
        )
    if not extraction.activities:
        return 0

    savepoint = session.begin_nested()
    try:
        ActivityRepository(session).bulk_create(
            [draft.to_row() for draft in extraction.activities]
        )
        savepoint.commit()
    except SQLAlchemyError as e:
        savepoint.rollback()
        logger.warning(f"Logging utterances failed for project {project_id}: {e}")
        return 0
    return len(extraction.activities)


@router.get(
    "/{project_id}/conversations/{sender_id}",
    responses={400: {"model": ErrorResponse}},
)
def get_tracker(
    project_id: str,
    sender_id: str,
    event_count: Optional[int] = Query(None, ge=0),
    session: Session = Depends(get_db),
) -> JSONResponse:
    """
    Get the stored tracker of a conversation.

    Args:
        project_id: Project the conversation must belong to
        sender_id: Conversation id
        event_count: Only return this many of the most recent events

    Returns:
        The tracker, or null when the conversation does not exist
    """
    conversation = ConversationRepository(session).get(sender_id)
    if conversation is None:
        return JSONResponse(status_code=200, content=None)
    if conversation.project_id != project_id:
        return JSONResponse(status_code=400, content={"error": PROJECT_MISMATCH_MESSAGE})
    return JSONResponse(
        status_code=200, content=_last_events(conversation.tracker, event_count)
    )


@router.post(
    "/{project_id}/conversations/{sender_id}",
    response_model=ConversationResponse,
    responses={409: {"model": ErrorResponse}},
)
def insert_tracker(
    project_id: str,
    sender_id: str,
    tracker: dict = Body(...),
    session: Session = Depends(get_db),
) -> ConversationResponse:
    """
    Create a conversation from a tracker.

    Raises:
        TrackerConflictError: If the conversation already exists
    """
    repo = ConversationRepository(session)
    if repo.get(sender_id) is not None:
        raise TrackerConflictError(sender_id)

    now = datetime.now(timezone.utc)
    conversation = repo.create(
        id=sender_id,
        project_id=project_id,
        env=settings.default_environment,
        tracker=tracker,
        status="new",
        extra_data={},
        created_at=now,
        updated_at=now,
    )
    return ConversationResponse.model_validate(conversation)


@router.put(
    "/{project_id}/conversations/{sender_id}",
    response_model=ConversationResponse,
)
def append_tracker(
    project_id: str,
    sender_id: str,
    tracker: dict = Body(...),
    session: Session = Depends(get_db),
) -> ConversationResponse:
    """
    Append events to a conversation's tracker, creating it if needed.

    ``tracker["events"]`` is appended to the stored events and every other
    top-level key overwrites the stored value. Appended user utterances are
    logged to the activity log.
    """
    events = tracker.get("events")
    events = events if isinstance(events, list) else []
    log_user_utterances(session, project_id, events)

    repo = ConversationRepository(session)
    now = datetime.now(timezone.utc)
    conversation = repo.get(sender_id)
    if conversation is None:
        conversation = repo.create(
            id=sender_id,
            project_id=project_id,
            env=settings.default_environment,
            tracker=tracker,
            status="new",
            extra_data={},
            created_at=now,
            updated_at=now,
        )
    else:
        conversation = repo.append_events(
            conversation,
            events,
            {k: v for k, v in tracker.items() if k != "events"},
            updated_at=now,
        )
    return ConversationResponse.model_validate(conversation)
