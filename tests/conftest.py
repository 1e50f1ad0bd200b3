"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import os
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Settings are cached on first use; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("LOG_FILE", None)

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from quizwise.db.adaptive_repository import AdaptiveRepository  # noqa: E402
from quizwise.db.models import Base  # noqa: E402
from quizwise.db.quiz_repository import QuizRepository  # noqa: E402

from tests.support import FIXED_NOW, InMemoryAdaptiveStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite in-memory database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock returning a fixed instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def rng():
    """Seeded random source for reproducible selections."""
    return random.Random(1234)


@pytest.fixture
def engine():
    """Fresh SQLite in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def quiz_repository(session_factory):
    return QuizRepository(session_factory, max_page_size=5)


@pytest.fixture
def adaptive_repository(session_factory):
    return AdaptiveRepository(session_factory)


@pytest.fixture
def memory_store():
    return InMemoryAdaptiveStore()


@pytest.fixture
def sample_quiz_payload():
    """Provide a valid quiz document."""
    return {
        "metadata": {
            "topic": "Photosynthesis",
            "level": "XI",
            "status": "draft",
            "title": "Light reactions",
        },
        "multiple_choice": [
            {
                "question": "Where do the light reactions take place?",
                "options": ["Stroma", "Thylakoid membrane", "Cytoplasm", "Nucleus"],
                "answer_index": 1,
                "explanation": "Photosystems sit in the thylakoid membrane.",
            },
            {
                "question": "Which gas is released?",
                "options": ["CO2", "N2", "O2", "H2"],
                "answer_index": 2,
            },
            {
                "question": "What splits water?",
                "options": ["PSII", "PSI", "ATP synthase", "Rubisco"],
                "answer_index": 0,
            },
        ],
        "essay": [
            {
                "question": "Explain photophosphorylation.",
                "rubric": "Mentions proton gradient and ATP synthase.",
            }
        ],
    }
