"""
Error taxonomy for the journal analysis integration.

Every failure raised by the prompt builder, the response validator and the
integration agent derives from IntegrationError so callers can catch the
whole family at once and still branch on the concrete kind.
"""

from typing import Any, Dict, List, Optional


class IntegrationError(Exception):
    """Base exception for all analysis integration errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class InvalidInput(IntegrationError):
    """Caller supplied unusable input (e.g. blank journal text)."""


class UpstreamClientFault(IntegrationError):
    """The LLM service rejected the request as a client error (4xx)."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message, context={"status_code": status_code})
        self.status_code = status_code


class UpstreamTransientFailure(IntegrationError):
    """Timeout, network failure or 5xx from the LLM service."""


class InvalidUpstreamResponse(UpstreamTransientFailure):
    """The LLM service answered, but not with the expected envelope."""


class MalformedResponse(IntegrationError):
    """The model output could not be parsed as JSON."""


class InvalidStructure(IntegrationError):
    """The model output parsed but violates the analysis schema."""

    def __init__(self, errors: List[str]):
        super().__init__(
            f"Invalid LLM response structure: {', '.join(errors)}",
            context={"errors": list(errors)},
        )
        self.errors = list(errors)


class UpstreamUnavailable(IntegrationError):
    """Every attempt against the LLM service failed."""

    def __init__(self, attempts: int, last_error: Exception):
        super().__init__(
            f"LLM service unavailable after {attempts} attempts: {last_error}",
            context={"attempts": attempts, "last_error": str(last_error)},
        )
        self.attempts = attempts
        self.last_error = last_error


class JournalProcessingError(IntegrationError):
    """Wraps any failure of the journal analysis pipeline."""

    def __init__(self, cause: IntegrationError):
        super().__init__(
            f"Failed to process journal entry: {cause.message}",
            context={"cause": cause.to_dict()},
        )
        self.cause = cause
