"""
Tests for concurrent import units against a real per-unit session scope.
"""

from unittest.mock import patch

from conftest import activities_with_text, make_conversation, user_event
from sqlalchemy.exc import OperationalError

from trackport.db.repositories import ConversationRepository
from trackport.models.db import Activity, Conversation
from trackport.pipeline.orchestrator import ImportCoordinator
from trackport.pipeline.report import ImportStatus
from trackport.pipeline.writers import UPSERT


def test_repeated_new_id_is_upserted(threaded_session_factory):
    batch = [
        make_conversation("dup", "project-a", [user_event(f"hello {i}", 10)])
        for i in range(16)
    ]

    report = ImportCoordinator(threaded_session_factory, max_workers=8).import_batch(
        batch, "production", True
    )

    assert report.status is ImportStatus.SUCCESS
    assert report.failures == []
    assert report.imported == 16
    with threaded_session_factory() as session:
        assert session.query(Conversation).count() == 1
        stored = ConversationRepository(session).get("dup")
        assert stored.tracker in [c["tracker"] for c in batch]
        assert session.query(Activity).count() == 16


def test_units_merge_in_input_order(threaded_session_factory):
    orphan = make_conversation("orphan", "project-z", [])
    batch = [
        make_conversation(
            f"c{i}",
            "project-a",
            [
                user_event(f"unresolved {i}", 10, language="xx"),
                user_event(f"hello {i}", 10),
            ],
        )
        for i in range(8)
    ]
    batch.insert(3, orphan)

    report = ImportCoordinator(threaded_session_factory, max_workers=4).import_batch(
        batch, "staging", True
    )

    assert report.status is ImportStatus.PARTIAL
    assert report.rejected == [orphan]
    assert [group[0]["text"] for group in report.unresolved] == [
        f"unresolved {i}" for i in range(8)
    ]
    assert report.activities_written == 8
    with threaded_session_factory() as session:
        stored = session.query(Conversation).filter(Conversation.env == "staging")
        assert sorted(c.id for c in stored) == [f"c{i}" for i in range(8)]


def test_failing_unit_does_not_stop_siblings(threaded_session_factory):
    original = ConversationRepository.upsert

    def fail_for_bad(self, **kwargs):
        if kwargs["id"] == "bad":
            raise OperationalError("INSERT INTO conversations", {}, Exception("disk full"))
        return original(self, **kwargs)

    batch = [
        make_conversation(f"c{i}", "project-a", [user_event(f"hello {i}", 10)])
        for i in range(6)
    ]
    batch.insert(2, make_conversation("bad", "project-a", [user_event("from bad", 10)]))

    with patch.object(
        ConversationRepository, "upsert", autospec=True, side_effect=fail_for_bad
    ):
        report = ImportCoordinator(
            threaded_session_factory, max_workers=4
        ).import_batch(batch, "production", True)

    assert report.status is ImportStatus.FAILURE
    assert [(f.conversation_id, f.operation) for f in report.failures] == [
        ("bad", UPSERT)
    ]
    assert report.imported == 6
    with threaded_session_factory() as session:
        assert session.query(Conversation).count() == 6
        assert ConversationRepository(session).get("bad") is None
        for i in range(6):
            assert len(activities_with_text(session, f"hello {i}")) == 1
        # Back-fill is a separate write from the failed upsert
        assert len(activities_with_text(session, "from bad")) == 1
