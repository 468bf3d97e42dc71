from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import IntegrationError
from app.db.database import (
    get_journal_collection,
    get_mistake_collection,
    get_overthinking_collection,
    get_user_collection,
)
from app.main import app
from app.models.integration import (
    AgentHealth,
    IntegrationTestResult,
    LLMServiceStatus,
    ProcessedJournal,
    ProcessingMetadata,
)
from app.routers.auth_dependency import verify_bearer_token
from app.services.dependencies import get_integration_agent, get_today

VALID_ANALYSIS: Dict[str, Any] = {
    "summary": ["Made a mistake in a presentation", "Colleagues were supportive"],
    "sentiment": "Positive",
    "sentiment_reasoning": "The writer ends on gratitude despite a rough start.",
    "wrongdoings_and_solutions": [
        {"wrongdoing": "Under-prepared slides", "solution": "Rehearse once the day before"},
    ],
    "overall_score": 7,
}


class FakeIntegrationAgent:
    def __init__(self, analysis: Optional[Dict[str, Any]] = None, error: Optional[IntegrationError] = None) -> None:
        self.analysis = analysis or dict(VALID_ANALYSIS)
        self.error = error
        self.calls: List[str] = []

    async def process_journal_entry(self, journal_text: str, options: Optional[Dict[str, Any]] = None) -> ProcessedJournal:
        self.calls.append(journal_text)
        if self.error:
            raise self.error
        return ProcessedJournal(
            original_text=journal_text.strip(),
            analysis=self.analysis,
            processed_at=datetime.now(timezone.utc),
            metadata=ProcessingMetadata(
                llm_provider="openai", model="gpt-4o-mini", tokens_used=321, response_time=850
            ),
        )

    async def health_check(self) -> AgentHealth:
        return AgentHealth(
            status="healthy",
            llm_service=LLMServiceStatus(url="http://llm.test", status="connected", response_time_ms=3.5),
            uptime=12.0,
            timestamp=datetime.now(timezone.utc),
        )

    async def test_integration(self) -> IntegrationTestResult:
        return IntegrationTestResult(success=True, message="Integration test passed")


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient().get_database("mental-clarity-test")


@pytest.fixture
def fake_agent() -> FakeIntegrationAgent:
    return FakeIntegrationAgent()


@pytest.fixture
def auth_state() -> Dict[str, str]:
    """Mutable so a test can switch the signed-in user mid-way."""
    return {"uid": "user-1"}


@pytest.fixture
def today_state() -> Dict[str, date]:
    return {"today": date(2025, 3, 10)}


def _override_collections(mongo_db) -> None:
    app.dependency_overrides[get_journal_collection] = lambda: mongo_db["journals"]
    app.dependency_overrides[get_overthinking_collection] = lambda: mongo_db["overthinkings"]
    app.dependency_overrides[get_mistake_collection] = lambda: mongo_db["mistakes"]
    app.dependency_overrides[get_user_collection] = lambda: mongo_db["users"]


@pytest.fixture
def client(mongo_db, fake_agent, auth_state, today_state):
    _override_collections(mongo_db)
    app.dependency_overrides[verify_bearer_token] = lambda: {
        "sub": auth_state["uid"],
        "email": f"{auth_state['uid']}@example.com",
    }
    app.dependency_overrides[get_integration_agent] = lambda: fake_agent
    app.dependency_overrides[get_today] = lambda: today_state["today"]
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(mongo_db):
    """Client whose requests go through real bearer token verification."""
    _override_collections(mongo_db)
    yield TestClient(app)
    app.dependency_overrides.clear()
