"""Tests for the best-effort translation service."""

import asyncio

import pytest

from coinsight.infrastructure.errors import TranslationError
from coinsight.services.translation.translator import TranslationService, parse_google_response
from fakes import FakeTransport


class TestParseGoogleResponse:
    def test_joins_segments(self):
        data = [[["Merhaba ", "Hello ", None], ["dünya", "world", None]], None, "en"]
        assert parse_google_response(data) == "Merhaba dünya"

    def test_malformed(self):
        with pytest.raises(TranslationError):
            parse_google_response({"unexpected": True})

    def test_empty(self):
        with pytest.raises(TranslationError):
            parse_google_response([[]])


class TestTranslationService:
    def test_source_language_makes_no_call(self):
        transport = FakeTransport()
        service = TranslationService(transport, source_language="en")
        assert asyncio.run(service.translate("Hello", "en")) == "Hello"
        assert transport.calls == []

    def test_translates_to_other_language(self):
        transport = FakeTransport()
        service = TranslationService(transport)
        assert asyncio.run(service.translate("Hello", "tr")) == "[tr] Hello"
        assert transport.calls == [("Hello", "tr")]

    def test_failure_falls_back_to_original(self):
        service = TranslationService(FakeTransport(fail=True))
        assert asyncio.run(service.translate("Keep me", "tr")) == "Keep me"

    def test_empty_answer_falls_back_to_original(self):
        async def blank(text, target):
            return ""

        service = TranslationService(blank)
        assert asyncio.run(service.translate("Keep me", "tr")) == "Keep me"

    def test_disabled_is_noop(self):
        transport = FakeTransport()
        service = TranslationService(transport, enabled=False)
        assert asyncio.run(service.translate("Hello", "tr")) == "Hello"
        assert service.is_noop("tr")
        assert transport.calls == []

    def test_translate_many_keeps_order(self):
        async def slow_first(text, target):
            # earlier items finish later
            await asyncio.sleep(0.01 * (3 - int(text)))
            return f"{target}:{text}"

        service = TranslationService(slow_first)
        assert asyncio.run(service.translate_many(["0", "1", "2"], "tr")) == ["tr:0", "tr:1", "tr:2"]

    def test_translate_many_partial_failure(self):
        async def flaky(text, target):
            if text == "bad":
                raise ConnectionError("boom")
            return text.upper()

        service = TranslationService(flaky)
        assert asyncio.run(service.translate_many(["ok", "bad"], "tr")) == ["OK", "bad"]
