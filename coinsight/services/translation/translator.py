"""Best-effort machine translation.

`translate` always resolves to a usable string: the translation when the
remote call works, the original text otherwise. Callers never see an error.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import requests

from coinsight.infrastructure.errors import TranslationError
from coinsight.infrastructure.logging.logging import get_logger

TranslateFn = Callable[[str, str], Awaitable[str]]

GOOGLE_TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"


def parse_google_response(data: Any) -> str:
    """Join the translated segments of a gtx answer: data[0] = [[translated, original, ...], ...]."""
    try:
        segments = data[0]
        parts = [seg[0] for seg in segments if seg and isinstance(seg[0], str)]
    except (TypeError, IndexError, KeyError) as e:
        raise TranslationError(f"Malformed translation response: {e}") from e
    if not parts:
        raise TranslationError("Empty translation response")
    return "".join(parts)


class GoogleTranslateTransport:
    def __init__(
        self,
        url: str = GOOGLE_TRANSLATE_URL,
        *,
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout_sec
        self._session = session or requests.Session()

    def _send(self, text: str, target_language: str) -> str:
        params = {"client": "gtx", "sl": "auto", "tl": target_language, "dt": "t", "q": text}
        response = self._session.get(self._url, params=params, timeout=self._timeout)
        if not response.ok:
            raise TranslationError(f"Translation request failed: {response.status_code}")
        return parse_google_response(response.json())

    async def __call__(self, text: str, target_language: str) -> str:
        return await asyncio.to_thread(self._send, text, target_language)


class TranslationService:
    def __init__(
        self,
        transport: TranslateFn,
        *,
        source_language: str = "en",
        enabled: bool = True,
    ) -> None:
        self._logger = get_logger("translation")
        self._transport = transport
        self._source = source_language
        self._enabled = enabled

    @property
    def source_language(self) -> str:
        return self._source

    def is_noop(self, target_language: str) -> bool:
        return not self._enabled or target_language == self._source

    async def translate(self, text: str, target_language: str) -> str:
        if not text or self.is_noop(target_language):
            return text
        try:
            translated = await self._transport(text, target_language)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._logger.warning("translation_failed", target=target_language, chars=len(text), error=str(e))
            return text
        if not isinstance(translated, str) or not translated:
            self._logger.warning("translation_empty", target=target_language, chars=len(text))
            return text
        return translated

    async def translate_many(self, texts: Sequence[str], target_language: str) -> List[str]:
        """Translate each text; result order matches input order."""
        if self.is_noop(target_language):
            return list(texts)
        return list(await asyncio.gather(*(self.translate(t, target_language) for t in texts)))
