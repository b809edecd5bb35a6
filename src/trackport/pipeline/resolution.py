"""
Project/language to NLU model resolution.

The index is built once per import batch and shared read-only by every
concurrent unit, instead of querying projects and models per event.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from trackport.db.repositories import NLUModelRepository, ProjectRepository


class ModelIndex:
    """Immutable mapping of project id -> language -> model id."""

    def __init__(self, mapping: Mapping[str, Mapping[str, str]]):
        self._mapping = MappingProxyType(
            {
                project_id: MappingProxyType(dict(languages))
                for project_id, languages in mapping.items()
            }
        )

    def resolve(self, project_id: str, language: Optional[str]) -> Optional[str]:
        """
        Find the model trained for a language in a project.

        Returns:
            Model id, or None when the project or the language is unknown
        """
        languages = self._mapping.get(project_id)
        if languages is None or language is None:
            return None
        return languages.get(language)

    def languages(self, project_id: str) -> Mapping[str, str]:
        return self._mapping.get(project_id, MappingProxyType({}))

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:
        return f"<ModelIndex(projects={len(self._mapping)})>"


def build_model_index(
    session: Session, project_ids: Optional[list[str]] = None
) -> ModelIndex:
    """
    Read projects and their models into a ModelIndex.

    When a project lists several models with the same language, the first one
    in the project's ordered list wins.

    Args:
        session: Database session
        project_ids: Restrict the index to these projects (default: all)

    Returns:
        ModelIndex
    """
    projects = ProjectRepository(session).get_with_models()
    if project_ids is not None:
        wanted = set(project_ids)
        projects = [p for p in projects if p.id in wanted]

    languages_by_model = NLUModelRepository(session).get_languages(
        model_id for project in projects for model_id in project.nlu_model_ids
    )

    mapping: dict[str, dict[str, str]] = {}
    for project in projects:
        languages: dict[str, str] = {}
        for model_id in project.nlu_model_ids:
            language = languages_by_model.get(model_id)
            if language is not None:
                languages.setdefault(language, model_id)
        mapping[project.id] = languages
    return ModelIndex(mapping)
