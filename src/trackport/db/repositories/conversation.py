"""
Conversation repository.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from trackport.db.repositories.base import BaseRepository
from trackport.models.db import Conversation


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for Conversation model."""

    def __init__(self, session: Session):
        super().__init__(Conversation, session)

    def upsert(
        self,
        id: str,
        project_id: str,
        env: str,
        tracker: Any,
        created_at: datetime,
        updated_at: datetime,
        status: Optional[str] = None,
        extra_data: Optional[dict] = None,
    ) -> Conversation:
        """
        Replace a conversation if it exists, otherwise insert it.

        This is a full overwrite: the stored tracker is replaced, not merged.
        The write is a single INSERT ... ON CONFLICT DO UPDATE on the id.

        Args:
            id: Conversation (sender) id
            project_id: Owning project id
            env: Environment tag
            tracker: Full tracker payload
            created_at: Creation time supplied by the exporter
            updated_at: Import time
            status: Optional conversation status
            extra_data: Any other envelope keys

        Returns:
            Stored conversation instance
        """
        # Keyed by column name: extra_data lives in the "metadata" column
        values = {
            "id": id,
            "project_id": project_id,
            "env": env,
            "tracker": tracker,
            "status": status,
            "metadata": extra_data or {},
            "created_at": created_at,
            "updated_at": updated_at,
        }
        dialect = self.session.get_bind().dialect.name
        insert = sqlite_insert if dialect == "sqlite" else pg_insert
        stmt = insert(Conversation.__table__).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={key: stmt.excluded[key] for key in values if key != "id"},
        )
        self.session.execute(stmt)

        # Reload so an instance already in the identity map reflects the overwrite
        return self.session.get(Conversation, id, populate_existing=True)

    def get_latest_updated(self, env: str) -> Optional[Conversation]:
        """
        Get the most recently updated conversation in an environment.

        Args:
            env: Environment tag

        Returns:
            Conversation or None if the environment has none
        """
        return (
            self.session.query(Conversation)
            .filter(Conversation.env == env)
            .order_by(Conversation.updated_at.desc())
            .first()
        )

    def append_events(
        self,
        conversation: Conversation,
        events: list,
        tracker_fields: dict,
        updated_at: datetime,
    ) -> Conversation:
        """
        Append events to a stored tracker and overwrite its other top-level keys.

        Args:
            conversation: Stored conversation
            events: Events to add at the end of ``tracker["events"]``
            tracker_fields: Tracker keys (other than ``events``) to set
            updated_at: Modification time
        """
        tracker = dict(conversation.tracker) if isinstance(conversation.tracker, dict) else {}
        existing = tracker.get("events")
        tracker["events"] = (list(existing) if isinstance(existing, list) else []) + list(
            events
        )
        for key, value in tracker_fields.items():
            if key != "events":
                tracker[key] = value

        conversation.tracker = tracker
        conversation.updated_at = updated_at
        # JSON columns do not track in-place mutation
        flag_modified(conversation, "tracker")
        self.session.flush()
        return conversation
