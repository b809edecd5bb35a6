"""
Activity (NLU training log) repository.
"""

from typing import List

from sqlalchemy.orm import Session

from trackport.db.repositories.base import BaseRepository
from trackport.models.db import Activity


class ActivityRepository(BaseRepository[Activity]):
    """Repository for Activity model. Rows are append-only."""

    def __init__(self, session: Session):
        super().__init__(Activity, session)

    def bulk_create(self, rows: List[dict]) -> List[Activity]:
        """
        Insert several activity rows in a single flush.

        Args:
            rows: Column values per activity

        Returns:
            Created activity instances
        """
        activities = [Activity(**row) for row in rows]
        self.session.add_all(activities)
        self.session.flush()
        return activities

