"""Error taxonomy.

Fetchers raise these; the orchestrator catches them at each fetch boundary
and turns them into view state. None of them crosses a detail cycle.
"""

from __future__ import annotations

from typing import Optional


class CoinsightError(RuntimeError):
    pass


class BackendHTTPError(CoinsightError):
    """Non-2xx answer from the backend (or the translation endpoint)."""

    def __init__(self, status_code: Optional[int], message: str) -> None:
        self.status_code = status_code
        super().__init__(f"{status_code} - {message}" if status_code is not None else message)


class QuoteListError(CoinsightError):
    """Startup quote list could not be loaded. Fatal, never retried."""


class DetailFetchError(CoinsightError):
    """OHLCV history for the selected symbol could not be loaded."""


class AnalysisError(CoinsightError):
    """AI analysis request failed; degrades to a placeholder summary."""


class NewsError(CoinsightError):
    """News request failed; degrades to an empty news list."""


class TranslationError(CoinsightError):
    """Internal to the translation service; callers never see it."""
