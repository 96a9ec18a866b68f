"""Error taxonomy shared by the ingestion pipeline and the follow-up generator."""

from __future__ import annotations

from typing import Optional


class RecapError(Exception):
    """Base class for all errors raised by the Recap backend."""

    status_code: int = 500
    public_message: str = "An error occurred during processing."


class ValidationError(RecapError):
    """Malformed or missing request input."""

    status_code = 400
    public_message = "Invalid request."


class NotFoundError(RecapError):
    """A requested meeting does not exist."""

    status_code = 404
    public_message = "Meeting not found"


class ConfigurationError(RecapError):
    """A required credential or setting is missing. Never retried."""


class UpstreamServiceError(RecapError):
    """A call to the transcription service or a language model failed.

    Args:
        message: Diagnostic message (logged, never returned to callers)
        upstream_status: HTTP status reported by the upstream service, if any
        provider: Name of the upstream provider ("openai", "anthropic", ...)
    """

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        provider: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.provider = provider

    def __str__(self) -> str:
        base = super().__str__()
        if self.upstream_status is not None:
            return f"{base} (provider={self.provider}, status={self.upstream_status})"
        return f"{base} (provider={self.provider})"


class ParseError(RecapError):
    """Structured model output could not be parsed."""


class PersistenceError(RecapError):
    """The aggregate write failed and was rolled back."""


# Upstream statuses that signal temporary overload: 503 from OpenAI/Gemini-style
# APIs, 529 from Anthropic.
TRANSIENT_OVERLOAD_STATUSES = frozenset({503, 529})


def is_transient_overload(error: BaseException) -> bool:
    """Return True if the error is an upstream overload eligible for retry."""
    return (
        isinstance(error, UpstreamServiceError)
        and error.upstream_status in TRANSIENT_OVERLOAD_STATUSES
    )
