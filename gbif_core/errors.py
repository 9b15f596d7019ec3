# =============================================================================
# gbif_core/errors.py  —  Exception Types
# =============================================================================
#
# Upstream failures become GbifApiError once retries are exhausted.  The
# tool executor turns them into `{success: false, error: ...}` envelopes
# using user_message(), which hides transport detail behind a short,
# status-specific sentence.
# =============================================================================

from typing import Optional


class GbifError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(GbifError):
    """An environment variable holds a value that cannot be used."""


class GbifApiError(GbifError):
    """The GBIF API answered with an error, or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def user_message(self) -> str:
        status = self.status_code
        if status == 400:
            return f"Invalid request: {self.message or 'Bad request to GBIF API'}"
        if status == 401:
            return "Authentication required for this GBIF endpoint"
        if status == 403:
            return "Access forbidden to this GBIF resource"
        if status == 404:
            return "Resource not found in GBIF"
        if status == 429:
            return "Rate limit exceeded. Please try again later"
        if status in (500, 502, 503):
            return "GBIF service temporarily unavailable"
        return self.message or "Unknown error occurred"

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class CircuitOpenError(GbifApiError):
    """Request refused locally because recent GBIF calls kept failing."""

    def __init__(self):
        super().__init__(
            "Circuit breaker is OPEN - service temporarily unavailable",
            code="CIRCUIT_OPEN",
        )


class ToolInputError(GbifError):
    """Tool arguments failed validation."""
