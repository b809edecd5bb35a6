"""
Pytest configuration and fixtures for Trackport tests.

This module provides shared fixtures for testing database models, repositories,
the import pipeline and the API.
"""

import os

# Keep the application engine off PostgreSQL during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from contextlib import contextmanager  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from typing import Generator, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from trackport.config import settings  # noqa: E402
from trackport.models.db import (  # noqa: E402
    Activity,
    Base,
    Conversation,
    NLUModel,
    Project,
)

# Epoch seconds used by the stored sample conversation (2019-02-12T19:33:20Z)
PRODUCTION_WATERMARK = 1550000000


def user_event(
    text: str,
    timestamp: float,
    language: Optional[str] = "en",
    intent: str = "greet",
    confidence: float = 0.98,
    entities: Optional[list] = None,
) -> dict:
    """Build a Rasa-style user event with parse data."""
    parse_data = {
        "intent": {"name": intent, "confidence": confidence},
        "entities": entities or [],
        "text": text,
    }
    if language is not None:
        parse_data["language"] = language
    return {
        "event": "user",
        "timestamp": timestamp,
        "text": text,
        "parse_data": parse_data,
    }


def bot_event(text: str, timestamp: float) -> dict:
    return {"event": "bot", "timestamp": timestamp, "text": text}


def make_conversation(
    conversation_id: Optional[str],
    project_id: str,
    events: list,
    created_at: str = "2019-01-01T00:00:00Z",
) -> dict:
    """Build an exported conversation as sent to the import endpoint."""
    conversation = {
        "projectId": project_id,
        "status": "read",
        "createdAt": created_at,
        "tracker": {"sender_id": conversation_id, "events": events},
    }
    if conversation_id is not None:
        conversation["_id"] = conversation_id
    return conversation


def activities_with_text(session: Session, text: str) -> list[Activity]:
    """Get activity rows whose utterance text matches exactly."""
    return session.query(Activity).filter(Activity.text == text).all()


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine using SQLite in-memory."""
    from sqlalchemy import JSON, event
    from sqlalchemy.dialects import postgresql

    # Replace JSONB with JSON for SQLite
    @event.listens_for(Base.metadata, "before_create")
    def _set_json_type(target, connection, **kw):
        for table in target.tables.values():
            for column in table.columns:
                if isinstance(column.type, postgresql.JSONB):
                    column.type = JSON()

    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={
            "check_same_thread": False
        },  # Allow cross-thread access for TestClient and import workers
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """
    Create a new database session for a test.

    Each test gets a fresh session with a transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(autouse=True)
def single_import_worker(monkeypatch):
    """The test session is shared by every import unit, so run units one at a time."""
    monkeypatch.setattr(settings, "import_max_workers", 1)


@pytest.fixture
def session_factory(db_session: Session):
    """Session factory handing out the test session to the import pipeline."""

    @contextmanager
    def factory() -> Generator[Session, None, None]:
        yield db_session
        db_session.flush()

    return factory


@pytest.fixture
def file_engine(tmp_path, test_engine):
    """
    File-backed SQLite engine shared by concurrent import workers.

    Depends on test_engine so the JSONB swap is registered before create_all.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'trackport.db'}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def threaded_session_factory(file_engine):
    """Session factory opening a fresh, committed session per call."""
    SessionMaker = sessionmaker(bind=file_engine)

    @contextmanager
    def factory() -> Generator[Session, None, None]:
        session = SessionMaker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    with factory() as session:
        session.add_all(
            [
                NLUModel(id="model-en", name="English model", language="en"),
                NLUModel(id="model-fr", name="French model", language="fr"),
                Project(
                    id="project-a",
                    name="Project A",
                    nlu_model_ids=["model-en", "model-fr"],
                ),
            ]
        )
    return factory


@pytest.fixture
def api_client(db_session: Session, session_factory):
    """Create a test client for FastAPI with database dependency overrides."""
    from unittest.mock import patch

    from fastapi.testclient import TestClient

    from trackport.api.app import app
    from trackport.db.connection import get_db, get_session_factory

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    # Disable lifespan startup checks for testing
    with patch("trackport.api.app.run_all_startup_checks"):
        client = TestClient(app)
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_models(db_session: Session) -> list[NLUModel]:
    """Create English and French NLU models."""
    models = [
        NLUModel(id="model-en", name="English model", language="en"),
        NLUModel(id="model-fr", name="French model", language="fr"),
        NLUModel(id="model-en-old", name="Old English model", language="en"),
    ]
    db_session.add_all(models)
    db_session.commit()
    return models


@pytest.fixture
def sample_project(db_session: Session, sample_models: list[NLUModel]) -> Project:
    """Create a project with English and French models."""
    project = Project(
        id="project-a",
        name="Project A",
        nlu_model_ids=["model-en", "model-fr", "model-en-old"],
    )
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def project_without_models(db_session: Session) -> Project:
    """Create a project that has no NLU models."""
    project = Project(id="project-empty", name="Empty Project", nlu_model_ids=[])
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def stored_conversation(db_session: Session, sample_project: Project) -> Conversation:
    """Create a conversation already imported into production."""
    updated_at = datetime.fromtimestamp(PRODUCTION_WATERMARK, tz=timezone.utc)
    conversation = Conversation(
        id="update",
        project_id=sample_project.id,
        env="production",
        status="read",
        tracker={
            "sender_id": "update",
            "events": [user_event("old hello", PRODUCTION_WATERMARK - 100)],
        },
        extra_data={},
        created_at=updated_at,
        updated_at=updated_at,
    )
    db_session.add(conversation)
    db_session.commit()
    db_session.refresh(conversation)
    return conversation
