"""Tests for the typewriter reveal."""

import asyncio

import pytest

from coinsight.services.presentation.typewriter import TypewriterRenderer, strip_markdown


class TestStripMarkdown:
    def test_bold_and_italic(self):
        assert strip_markdown("**Bullish** trend, *careful* now, __strong__") == "Bullish trend, careful now, strong"

    def test_plain_text_untouched(self):
        assert strip_markdown("RSI is 55.2") == "RSI is 55.2"


class TestTypewriter:
    def test_reveals_monotonically_to_full_length(self):
        seen = []

        async def scenario():
            tw = TypewriterRenderer(interval_sec=0, on_update=seen.append)
            tw.start("Hello")
            await tw.wait()
            return tw

        tw = asyncio.run(scenario())
        assert tw.displayed == "Hello"
        assert tw.is_complete
        assert not tw.is_running
        assert seen == ["", "H", "He", "Hel", "Hell", "Hello"]

    def test_restart_resets_and_cancels_previous(self):
        seen = []

        async def scenario():
            tw = TypewriterRenderer(interval_sec=0, on_update=seen.append)
            tw.start("abcdefgh")
            for _ in range(3):
                await asyncio.sleep(0)
            assert 0 < tw.visible < 8
            tw.start("xyz")
            assert tw.visible == 0
            assert tw.displayed == ""
            await tw.wait()
            return tw

        tw = asyncio.run(scenario())
        assert tw.displayed == "xyz"
        restart = seen.index("", 1)
        assert seen[restart:] == ["", "x", "xy", "xyz"]
        lengths = [len(s) for s in seen[:restart]]
        assert lengths == sorted(lengths)
        assert max(lengths) <= 8

    def test_markdown_stripped_before_reveal(self):
        async def scenario():
            tw = TypewriterRenderer(interval_sec=0)
            tw.start("**Up**")
            await tw.wait()
            return tw

        tw = asyncio.run(scenario())
        assert tw.text == "Up"
        assert tw.displayed == "Up"

    def test_empty_text_is_complete_immediately(self):
        async def scenario():
            tw = TypewriterRenderer(interval_sec=0)
            tw.start("")
            return tw.is_running, tw.is_complete

        assert asyncio.run(scenario()) == (False, True)

    def test_stop_freezes_progress(self):
        async def scenario():
            tw = TypewriterRenderer(interval_sec=0)
            tw.start("abcdef")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            tw.stop()
            frozen = tw.visible
            for _ in range(5):
                await asyncio.sleep(0)
            return frozen, tw.visible

        frozen, later = asyncio.run(scenario())
        assert frozen == later
        assert frozen < 6

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            TypewriterRenderer(interval_sec=-1)
