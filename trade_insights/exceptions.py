"""Error types raised by the analysis pipeline and the AI client."""

from typing import List, Optional


class TradingDataError(ValueError):
    """Raised when uploaded trading data cannot be analysed."""

    def __init__(self, message: str, errors: Optional[List[str]] = None, warnings: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]
        self.warnings = warnings or []


class AIClientError(RuntimeError):
    """Raised when the text-generation API call fails."""


class QuotaExceededError(AIClientError):
    """Raised on HTTP 429 / exhausted quota responses."""
