from datetime import datetime
from typing import Any, Dict, Literal, Optional, Union

from app.models.common import CamelModel

Number = Union[int, float]


class LLMReply(CamelModel):
    """Envelope returned by POST {base_url}/api/ask."""
    response: str
    provider: Optional[str] = None
    model: Optional[str] = None
    tokens_used: Optional[Number] = None
    response_time: Optional[Number] = None


class ProcessingMetadata(CamelModel):
    llm_provider: Optional[str] = None
    model: Optional[str] = None
    tokens_used: Optional[Number] = None
    response_time: Optional[Number] = None
    attempts: int = 1


class ProcessedJournal(CamelModel):
    original_text: str
    # Validated model answer, keys exactly as the model produced them
    analysis: Dict[str, Any]
    processed_at: datetime
    metadata: ProcessingMetadata


class LLMServiceStatus(CamelModel):
    url: str
    status: Literal["connected", "disconnected"]
    response_time_ms: Optional[float] = None
    error: Optional[str] = None


class AgentHealth(CamelModel):
    status: Literal["healthy", "unhealthy"]
    llm_service: LLMServiceStatus
    uptime: float
    timestamp: datetime


class IntegrationTestResult(CamelModel):
    success: bool
    message: str
    sample_result: Optional[ProcessedJournal] = None
    error: Optional[str] = None
