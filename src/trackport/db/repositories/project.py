"""
Project repository.
"""

from typing import List

from sqlalchemy.orm import Session

from trackport.db.repositories.base import BaseRepository
from trackport.models.db import Project


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project model."""

    def __init__(self, session: Session):
        super().__init__(Project, session)

    def list_ids(self) -> List[str]:
        """
        Get the ids of every known project.

        Returns:
            List of project ids
        """
        return [row[0] for row in self.session.query(Project.id).all()]

    def get_with_models(self) -> List[Project]:
        """
        Get all projects that have at least one associated NLU model.

        Returns:
            List of projects
        """
        return [project for project in self.get_all() if project.nlu_model_ids]
