"""
Parse-event extraction for activity back-fill.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from trackport.models.tracker import (
    ActivityDraft,
    TrackerEvent,
    UserUtterance,
    iter_tracker_events,
)
from trackport.pipeline.resolution import ModelIndex
from trackport.pipeline.validation import ConversationDraft

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Activity drafts and unresolvable parse data for one conversation."""

    activities: list[ActivityDraft] = field(default_factory=list)
    unresolved: list[dict] = field(default_factory=list)


def is_candidate(event: TrackerEvent, watermark: Optional[float]) -> bool:
    """
    Whether an event carries parse data usable for back-fill.

    A candidate is a non-command user utterance with parse data that declares
    a language and has non-empty text. With a watermark, the event must also
    carry a timestamp strictly newer than it; live logging passes None.
    """
    if not isinstance(event, UserUtterance):
        return False
    if event.is_command or event.parse_data is None:
        return False
    if event.parse_data.language is None or not event.utterance_text:
        return False
    if watermark is None:
        return True
    return event.timestamp is not None and event.timestamp > watermark


def build_activity(
    model_id: str, event: UserUtterance, now: datetime
) -> ActivityDraft:
    parse_data = event.parse_data
    return ActivityDraft(
        model_id=model_id,
        text=event.utterance_text,
        intent=parse_data.intent_name if parse_data else None,
        confidence=parse_data.intent_confidence if parse_data else None,
        entities=parse_data.entities if parse_data else [],
        created_at=now,
        updated_at=now,
    )


def extract_utterances(
    project_id: str,
    tracker: Any,
    watermark: Optional[float],
    index: ModelIndex,
    now: Optional[datetime] = None,
) -> ExtractionResult:
    """
    Scan a tracker and resolve its candidate parse events.

    Args:
        project_id: Project owning the tracker
        tracker: Raw tracker payload
        watermark: Events at or before this epoch time are skipped (None: no cutoff)
        index: Per-batch model index
        now: Timestamp for created activity (defaults to current UTC time)

    Returns:
        ExtractionResult, both lists in tracker event order
    """
    now = now or datetime.now(timezone.utc)
    result = ExtractionResult()

    for event in iter_tracker_events(tracker):
        if not is_candidate(event, watermark):
            continue
        model_id = index.resolve(project_id, event.parse_data.language)
        if model_id is None:
            result.unresolved.append(event.parse_data.raw)
        else:
            result.activities.append(build_activity(model_id, event, now))

    return result


def extract_parse_events(
    conversation: ConversationDraft,
    watermark: float,
    index: ModelIndex,
    now: Optional[datetime] = None,
) -> ExtractionResult:
    """Extract activity drafts from a validated conversation."""
    result = extract_utterances(
        conversation.project_id, conversation.tracker, watermark, index, now=now
    )
    if result.unresolved:
        logger.warning(
            f"Conversation {conversation.id}: {len(result.unresolved)} parse "
            f"event(s) have no model for project {conversation.project_id}"
        )
    return result
