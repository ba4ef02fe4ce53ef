"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Database tests run against a fresh in-memory SQLite database per test.
"""
import os
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before config is first imported (settings are cached)
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


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


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


# ========================================
# Database
# ========================================


@pytest.fixture
def engine():
    """Fresh database with all tables."""
    from ielts_center.db.database import create_db_engine, drop_db, init_db

    engine = create_db_engine(os.environ["DATABASE_URL"])
    init_db(bind=engine)
    yield engine
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    from sqlalchemy.orm import sessionmaker

    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    """Notifier that records every published event."""
    from ielts_center.events import ChangeNotifier

    notifier = ChangeNotifier()
    notifier.events = []
    notifier.subscribe(notifier.events.append)
    return notifier


@pytest.fixture
def client(session_factory):
    """API client bound to the test database."""
    from fastapi.testclient import TestClient

    from ielts_center.api.main import app
    from ielts_center.db.database import get_session

    def override_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


# ========================================
# Sample data
# ========================================


@pytest.fixture
def reading_test_payload():
    """A two-section reading test: single choice, TFNG and a matching group."""
    return {
        "title": "Academic Reading Practice 1",
        "description": "Urban farming",
        "skill": "READING",
        "level": "INTERMEDIATE",
        "time_limit": 60,
        "sections": [
            {
                "title": "Passage 1",
                "order": 1,
                "passage_text": "Rooftop gardens have spread across many cities...",
                "questions": [
                    {
                        "question": "What is the main idea of the passage?",
                        "type": "MULTIPLE_CHOICE",
                        "options": ["A", "B", "C", "D"],
                        "correct_answers": ["B"],
                        "order": 1,
                    },
                    {
                        "question": "Rooftop farms reduce building energy use.",
                        "type": "IDENTIFYING_INFORMATION",
                        "options": ["TRUE", "FALSE", "NOT GIVEN"],
                        "correct_answers": ["TRUE"],
                        "order": 2,
                    },
                ],
            },
            {
                "title": "Passage 2",
                "order": 2,
                "passage_text": "Vertical farming relies on controlled environments...",
                "questions": [
                    {
                        "question": "Match each paragraph with its heading.",
                        "type": "MATCHING",
                        "sub_questions": ["Paragraph A", "Paragraph B", "Paragraph C"],
                        "options": ["i", "ii", "iii", "iv"],
                        "correct_answers": ["iv", "ii", "i"],
                        "points": 3,
                        "explanation": "Paragraph A introduces costs.",
                        "order": 1,
                    },
                ],
            },
        ],
    }


@pytest.fixture
def sample_essay():
    """A Task 2 essay of about 320 words in eight paragraphs."""
    body = (
        "Many people believe that governments should invest more in public transport "
        "than in new roads. In this essay I will explain why I agree with this view, "
        "although building roads still has some benefits for rural communities."
    )
    second = (
        "Firstly, buses and trains move large numbers of passengers efficiently. "
        "However, private cars carry only one or two people on most journeys. "
        "Therefore cities that expand rail networks often see less congestion and "
        "cleaner air, which improves the health of residents over time."
    )
    third = (
        "Moreover, public transport is cheaper for low income families. "
        "In addition, young students and elderly citizens who cannot drive depend "
        "on reliable services to reach schools, hospitals and workplaces every day. "
        "Investment in these services creates a fairer society for everyone."
    )
    conclusion = (
        "In conclusion, although roads remain necessary in remote regions, the "
        "advantages of modern public transport outweigh those of new highways. "
        "Governments should therefore prioritise trains, trams and buses when they "
        "plan transport budgets for the coming decades."
    )
    return "\n\n".join([body, second, third, conclusion] * 2)
