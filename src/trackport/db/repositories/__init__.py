"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from trackport.db.repositories.activity import ActivityRepository
from trackport.db.repositories.base import BaseRepository
from trackport.db.repositories.conversation import ConversationRepository
from trackport.db.repositories.nlu_model import NLUModelRepository
from trackport.db.repositories.project import ProjectRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "ConversationRepository",
    "NLUModelRepository",
    "ProjectRepository",
]
