"""
Integration agent between the journal API and the external LLM service.

Pipeline for one journal entry:
    1. build the analysis prompt from the user's text
    2. POST it to {base_url}/api/ask, retrying failed attempts
    3. parse and validate the model answer (part of each attempt)
    4. return a ProcessedJournal envelope with provider metadata

The agent keeps no mutable state; everything it needs comes from the
LLMServiceConfig it is built with, so a single instance can serve all
requests of the process.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from app.core.config import LLMServiceConfig
from app.core.exceptions import (
    IntegrationError,
    InvalidUpstreamResponse,
    JournalProcessingError,
    UpstreamClientFault,
    UpstreamTransientFailure,
    UpstreamUnavailable,
)
from app.models.integration import (
    AgentHealth,
    IntegrationTestResult,
    LLMReply,
    LLMServiceStatus,
    ProcessedJournal,
    ProcessingMetadata,
)
from app.services.llm_validator import parse_llm_response
from app.services.prompt_builder import build_analysis_prompt

logger = logging.getLogger(__name__)

_PROCESS_STARTED = time.monotonic()

SAMPLE_JOURNAL = (
    "Today was a challenging day at work. I made a mistake during the presentation "
    "and felt embarrassed. However, I learned from it and my colleagues were supportive. "
    "I'm grateful for their understanding."
)

DEFAULT_LLM_OPTIONS = {"max_tokens": 1000, "temperature": 0.3}

# 4xx statuses that still deserve another attempt
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})

RetryPolicy = Callable[[IntegrationError], bool]


def retry_unless_client_fault(error: IntegrationError) -> bool:
    """Default policy: every failure is retried except a 4xx rejection."""
    return not isinstance(error, UpstreamClientFault)


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class IntegrationAgent:
    """Turns free journal text into a validated LLM analysis."""

    def __init__(
        self,
        config: LLMServiceConfig,
        retry_policy: RetryPolicy = retry_unless_client_fault,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            config: LLM service location, timeouts and retry bounds.
            retry_policy: Decides whether a failed attempt is retried.
            transport: Optional httpx transport (e.g. httpx.MockTransport).
            sleep: Awaitable used for the backoff between attempts.
        """
        self.config = config
        self._retry_policy = retry_policy
        self._transport = transport
        self._sleep = sleep

    def _client(self, timeout_ms: int) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=timeout_ms / 1000,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )

    async def process_journal_entry(
        self, journal_text: str, options: Optional[Dict[str, Any]] = None
    ) -> ProcessedJournal:
        """
        Analyze one journal entry.

        Raises:
            InvalidInput: the text is not a non-empty string.
            JournalProcessingError: any later stage failed; ``cause`` holds
                the named error (UpstreamClientFault, UpstreamUnavailable, ...).
        """
        prompt = build_analysis_prompt(journal_text)

        try:
            analysis, reply, attempts = await self._analyze_with_retry(prompt, options or {})
        except IntegrationError as e:
            logger.error("Integration agent error: %s", e.message)
            raise JournalProcessingError(e) from e

        return ProcessedJournal(
            original_text=journal_text.strip(),
            analysis=analysis,
            processed_at=datetime.now(timezone.utc),
            metadata=ProcessingMetadata(
                llm_provider=reply.provider,
                model=reply.model,
                tokens_used=reply.tokens_used,
                response_time=reply.response_time,
                attempts=attempts,
            ),
        )

    async def _analyze_with_retry(
        self, prompt: str, options: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], LLMReply, int]:
        max_attempts = self.config.max_attempts
        last_error: Optional[IntegrationError] = None

        for attempt in range(1, max_attempts + 1):
            try:
                reply = await self.call_llm_service(prompt, options)
                return parse_llm_response(reply.response), reply, attempt
            except IntegrationError as e:
                last_error = e
                logger.warning(
                    "LLM service call attempt %d/%d failed: %s", attempt, max_attempts, e.message
                )
                if not self._retry_policy(e):
                    raise
                if attempt < max_attempts:
                    await self._sleep(attempt * self.config.retry_delay_ms / 1000)

        raise UpstreamUnavailable(max_attempts, last_error)

    async def call_llm_service(self, prompt: str, options: Dict[str, Any]) -> LLMReply:
        """Single attempt against POST /api/ask, bounded by the call timeout."""
        payload = {"prompt": prompt, "options": {**DEFAULT_LLM_OPTIONS, **options}}

        try:
            async with self._client(self.config.timeout_ms) as client:
                # httpx timeouts are per phase; wait_for caps the whole attempt
                response = await asyncio.wait_for(
                    client.post("/api/ask", json=payload), self.config.timeout_ms / 1000
                )
                response.raise_for_status()
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise UpstreamTransientFailure(
                f"timeout of {self.config.timeout_ms}ms exceeded"
            ) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if 400 <= status_code < 500 and status_code not in RETRYABLE_CLIENT_STATUSES:
                raise UpstreamClientFault(
                    f"LLM service rejected the request with status {status_code}", status_code
                ) from e
            raise UpstreamTransientFailure(
                f"LLM service responded with status {status_code}",
                context={"status_code": status_code},
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamTransientFailure(f"LLM service request failed: {e}") from e

        return self._read_reply(response)

    @staticmethod
    def _read_reply(response: httpx.Response) -> LLMReply:
        try:
            body = response.json()
        except (ValueError, RecursionError) as e:
            raise InvalidUpstreamResponse("Invalid response format from LLM service") from e

        if not isinstance(body, dict) or not isinstance(body.get("response"), str) or not body["response"]:
            raise InvalidUpstreamResponse("Invalid response format from LLM service")

        metadata = body.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        return LLMReply(
            response=body["response"],
            provider=_str_or_none(body.get("provider")),
            model=_str_or_none(body.get("model")),
            tokens_used=_number_or_none(metadata.get("tokens_used")),
            response_time=_number_or_none(metadata.get("response_time")),
        )

    async def health_check(self) -> AgentHealth:
        """Probe GET /api/health. Failures are reported, never raised."""
        started = time.perf_counter()
        error = None
        try:
            async with self._client(self.config.health_timeout_ms) as client:
                response = await asyncio.wait_for(
                    client.get("/api/health"), self.config.health_timeout_ms / 1000
                )
                response.raise_for_status()
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.warning("LLM service health check failed: %s", error)

        return AgentHealth(
            status="unhealthy" if error else "healthy",
            llm_service=LLMServiceStatus(
                url=self.config.base_url,
                status="disconnected" if error else "connected",
                response_time_ms=round((time.perf_counter() - started) * 1000, 2),
                error=error,
            ),
            uptime=round(time.monotonic() - _PROCESS_STARTED, 3),
            timestamp=datetime.now(timezone.utc),
        )

    async def test_integration(self) -> IntegrationTestResult:
        """Run the full pipeline on a canned entry for operational checks."""
        try:
            result = await self.process_journal_entry(SAMPLE_JOURNAL)
        except Exception as e:
            return IntegrationTestResult(
                success=False, message="Integration test failed", error=str(e)
            )
        return IntegrationTestResult(
            success=True, message="Integration test passed", sample_result=result
        )
