"""
Tests for tracker event parsing.
"""

from trackport.models.tracker import (
    OtherEvent,
    ParseData,
    UserUtterance,
    iter_tracker_events,
    parse_event,
)


class TestParseEvent:
    """Tests for parse_event."""

    def test_user_event_with_parse_data(self):
        raw = {
            "event": "user",
            "timestamp": 1550000001.5,
            "text": "hello",
            "parse_data": {
                "intent": {"name": "greet", "confidence": 0.9},
                "entities": [{"entity": "name", "value": "bob"}],
                "language": "en",
                "text": "hello",
            },
        }

        event = parse_event(raw)

        assert isinstance(event, UserUtterance)
        assert event.text == "hello"
        assert event.timestamp == 1550000001.5
        assert event.parse_data.language == "en"
        assert event.parse_data.intent_name == "greet"
        assert event.parse_data.intent_confidence == 0.9
        assert event.parse_data.entities == [{"entity": "name", "value": "bob"}]
        assert event.parse_data.raw is raw["parse_data"]

    def test_non_user_event(self):
        event = parse_event({"event": "bot", "timestamp": 12, "text": "hi"})

        assert isinstance(event, OtherEvent)
        assert event.kind == "bot"
        assert event.timestamp == 12.0

    def test_garbage_is_other_event(self):
        assert parse_event("not an event") == OtherEvent()
        assert parse_event(None) == OtherEvent()
        assert isinstance(parse_event({"event": 3}), OtherEvent)

    def test_command_detection(self):
        event = parse_event({"event": "user", "text": "/restart", "timestamp": 1})

        assert isinstance(event, UserUtterance)
        assert event.is_command
        assert event.parse_data is None

    def test_non_numeric_timestamp_is_dropped(self):
        event = parse_event({"event": "user", "text": "hi", "timestamp": "yesterday"})
        assert event.timestamp is None

        event = parse_event({"event": "user", "text": "hi", "timestamp": True})
        assert event.timestamp is None

    def test_missing_event_text_falls_back_to_parse_text(self):
        event = parse_event(
            {"event": "user", "timestamp": 1, "parse_data": {"text": "bonjour"}}
        )

        assert event.text == "bonjour"
        assert event.utterance_text == "bonjour"


class TestParseData:
    """Tests for ParseData.from_payload."""

    def test_non_dict_payload(self):
        assert ParseData.from_payload(None) is None
        assert ParseData.from_payload(["en"]) is None

    def test_optional_fields_missing(self):
        parse_data = ParseData.from_payload({"text": "hi"})

        assert parse_data.language is None
        assert parse_data.intent_name is None
        assert parse_data.intent_confidence is None
        assert parse_data.entities == []

    def test_empty_language_is_absent(self):
        assert ParseData.from_payload({"language": ""}).language is None

    def test_malformed_intent(self):
        parse_data = ParseData.from_payload(
            {"intent": "greet", "entities": "none", "language": "en"}
        )

        assert parse_data.intent_name is None
        assert parse_data.entities == []


class TestIterTrackerEvents:
    """Tests for iter_tracker_events."""

    def test_yields_in_order(self):
        tracker = {
            "events": [
                {"event": "action", "timestamp": 1},
                {"event": "user", "text": "a", "timestamp": 2},
                {"event": "bot", "timestamp": 3},
            ]
        }

        events = list(iter_tracker_events(tracker))

        assert [type(e) for e in events] == [OtherEvent, UserUtterance, OtherEvent]

    def test_malformed_trackers_yield_nothing(self):
        assert list(iter_tracker_events(None)) == []
        assert list(iter_tracker_events({"events": "nope"})) == []
        assert list(iter_tracker_events([{"event": "user"}])) == []
