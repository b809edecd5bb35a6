"""
Tracker event models.

Intermediate dataclasses for the loosely-shaped tracker payloads sent by
exporters. Parsing is permissive: anything that does not look like a user
utterance becomes an ``OtherEvent`` instead of raising.
"""

from dataclasses import dataclass, field
from datetime import datetime
from numbers import Real
from typing import Any, Iterator, Optional, Union

COMMAND_MARKER = "/"
USER_EVENT = "user"


@dataclass(frozen=True)
class ParseData:
    """NLU parse result attached to a user utterance."""

    raw: dict
    language: Optional[str] = None
    text: Optional[str] = None
    intent_name: Optional[str] = None
    intent_confidence: Optional[float] = None
    entities: list = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["ParseData"]:
        """Build ParseData from a raw ``parse_data`` object, or None if unusable."""
        if not isinstance(payload, dict):
            return None

        intent = payload.get("intent")
        intent_name = None
        intent_confidence = None
        if isinstance(intent, dict):
            name = intent.get("name")
            intent_name = name if isinstance(name, str) else None
            confidence = intent.get("confidence")
            if isinstance(confidence, Real) and not isinstance(confidence, bool):
                intent_confidence = float(confidence)

        language = payload.get("language")
        text = payload.get("text")
        entities = payload.get("entities")

        return cls(
            raw=payload,
            language=language if isinstance(language, str) and language else None,
            text=text if isinstance(text, str) else None,
            intent_name=intent_name,
            intent_confidence=intent_confidence,
            entities=entities if isinstance(entities, list) else [],
        )


@dataclass(frozen=True)
class UserUtterance:
    """A ``user`` event from a tracker."""

    text: str
    timestamp: Optional[float] = None
    parse_data: Optional[ParseData] = None

    @property
    def is_command(self) -> bool:
        return self.text.startswith(COMMAND_MARKER)

    @property
    def utterance_text(self) -> str:
        """Text to train on: the parsed text when present, else the raw event text."""
        if self.parse_data is not None and self.parse_data.text is not None:
            return self.parse_data.text
        return self.text


@dataclass(frozen=True)
class OtherEvent:
    """Any tracker event that is not a user utterance (bot, action, slot...)."""

    kind: Optional[str] = None
    timestamp: Optional[float] = None


TrackerEvent = Union[UserUtterance, OtherEvent]


def _coerce_timestamp(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Real):
        return float(value)
    return None


def parse_event(raw: Any) -> TrackerEvent:
    """
    Convert a raw tracker event into its typed variant.

    Args:
        raw: One element of ``tracker["events"]``

    Returns:
        UserUtterance for well-formed user events, OtherEvent otherwise
    """
    if not isinstance(raw, dict):
        return OtherEvent()

    kind = raw.get("event")
    timestamp = _coerce_timestamp(raw.get("timestamp"))
    if kind != USER_EVENT:
        return OtherEvent(kind=kind if isinstance(kind, str) else None, timestamp=timestamp)

    parse_data = ParseData.from_payload(raw.get("parse_data"))
    text = raw.get("text")
    if not isinstance(text, str):
        # Some exporters only fill parse_data.text
        text = parse_data.text if parse_data and parse_data.text is not None else ""

    return UserUtterance(text=text, timestamp=timestamp, parse_data=parse_data)


def iter_tracker_events(tracker: Any) -> Iterator[TrackerEvent]:
    """Yield typed events from a tracker payload, tolerating malformed shapes."""
    if not isinstance(tracker, dict):
        return
    events = tracker.get("events")
    if not isinstance(events, list):
        return
    for raw in events:
        yield parse_event(raw)


@dataclass
class ActivityDraft:
    """Activity row prepared by the extractor, not yet written."""

    model_id: str
    text: str
    intent: Optional[str]
    confidence: Optional[float]
    entities: list
    created_at: datetime
    updated_at: datetime

    def to_row(self) -> dict:
        """Convert to column values for a bulk insert."""
        return {
            "model_id": self.model_id,
            "text": self.text,
            "intent": self.intent,
            "confidence": self.confidence,
            "entities": self.entities,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
