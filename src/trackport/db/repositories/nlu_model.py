"""
NLU model repository.
"""

from typing import Dict, Iterable

from sqlalchemy.orm import Session

from trackport.db.repositories.base import BaseRepository
from trackport.models.db import NLUModel


class NLUModelRepository(BaseRepository[NLUModel]):
    """Repository for NLUModel model."""

    def __init__(self, session: Session):
        super().__init__(NLUModel, session)

    def get_languages(self, model_ids: Iterable[str]) -> Dict[str, str]:
        """
        Map model ids to their declared language.

        Args:
            model_ids: Model ids to look up; unknown ids are omitted from the result

        Returns:
            Dict of model id -> language tag
        """
        ids = list(set(model_ids))
        if not ids:
            return {}
        rows = (
            self.session.query(NLUModel.id, NLUModel.language)
            .filter(NLUModel.id.in_(ids))
            .all()
        )
        return {model_id: language for model_id, language in rows}
