"""
Pytest configuration and fixtures.
"""

import uuid
from typing import Any, Dict, List

import pytest

from app.schemas.job_match import JobMatch
from app.tasks.search_store import ProfileStore, SearchStore


@pytest.fixture(autouse=True)
def reset_stores():
    """
    Start every test with empty in-memory stores.

    The stores keep class level state and an asyncio lock; both are rebuilt so
    no state or loop binding leaks between tests.
    """
    SearchStore.reset()
    ProfileStore.reset()
    yield
    SearchStore.reset()
    ProfileStore.reset()


def make_match(**overrides: Any) -> JobMatch:
    """Build a well formed JobMatch."""
    data: Dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Remote",
        "keywordScore": 80,
        "description": "Python and PostgreSQL services",
    }
    data.update(overrides)
    return JobMatch.model_validate(data)


def raw_match(**overrides: Any) -> Dict[str, Any]:
    """Build a wire format match row."""
    data: Dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "title": "Frontend Engineer",
        "company": "Globex",
        "location": "Berlin",
        "keywordScore": 70,
    }
    data.update(overrides)
    return data


@pytest.fixture
def match_factory():
    return make_match


@pytest.fixture
def raw_match_factory():
    return raw_match


@pytest.fixture
async def stored_search():
    """A pending search owned by the default user, with two stored matches."""
    from app.core.config import settings

    search = await SearchStore.create_search(settings.default_user_id, "python developer")
    matches: List[JobMatch] = await SearchStore.add_matches(
        search.id,
        [
            make_match(
                title="Python Developer",
                keywordScore=90,
                description="We need a python developer with django experience",
                gapAnalysis={"requiredSkills": ["Python", "Django", "Docker"]},
            ),
            make_match(
                title="Data Engineer",
                keywordScore=60,
                description="Spark pipelines and SQL",
                gapAnalysis={"requiredSkills": ["Python", "SQL", "AWS"]},
            ),
        ],
    )
    return search, matches
