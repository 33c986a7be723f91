# /tests/conftest.py

import io
import asyncio
import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.models.evaluation_model import Evaluation, Suggestion
from app.services.database_service import DatabaseService
from app.services.state_controller import ApplicationStateController


@pytest.fixture
def store():
    """A DatabaseService backed by a private in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield DatabaseService(session_factory)
    engine.dispose()


@pytest.fixture
def controller(store):
    """A fresh, NOT yet loaded controller. Async tests call `await controller.load()`."""
    return ApplicationStateController(store)


@pytest.fixture
def make_image_bytes():
    def _make(width=400, height=300, mode="RGB", fmt="PNG", color=(200, 30, 30)):
        if mode == "RGBA":
            color = (*color[:3], 128)
        image = Image.new(mode, (width, height), color)
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()
    return _make


@pytest.fixture
def sample_evaluation():
    return Evaluation(
        handwritingScore=78,
        originalityScore=85,
        creativityScore=80,
        overallScore=82,
        punctuationErrors=["Missing full stop after 'forest'", "Comma splice in line 3"],
        conceptKnowledge="Clear beginning and end; the middle is rushed.",
        transcribedText="Once upon a time a small fox lived in the forest",
        plagiarismNote="Looks like the student's own work.",
        weaknesses=["Rushed middle section"],
        suggestions=[Suggestion(topic="Paragraphs", action="Split the story into three paragraphs.")],
    )


@pytest.fixture
def api_client(controller):
    """A TestClient wired to the test controller instead of the startup one."""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.services.state_controller import get_state_controller

    asyncio.run(controller.load())
    app.dependency_overrides[get_state_controller] = lambda: controller
    yield TestClient(app)
    app.dependency_overrides.clear()
