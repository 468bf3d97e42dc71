from datetime import date, datetime, timezone
from functools import lru_cache

from app.core.config import LLMServiceConfig
from app.services.integration_agent import IntegrationAgent


@lru_cache(maxsize=1)
def get_integration_agent() -> IntegrationAgent:
    """One agent per process, configured from the environment."""
    return IntegrationAgent(LLMServiceConfig.from_env())


def get_today() -> date:
    """Current calendar day in UTC, used for streak bookkeeping."""
    return datetime.now(timezone.utc).date()
