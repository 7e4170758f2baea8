"""Unit tests for :mod:`recipe_parity.entrypoints.cli.helpers.messages`.

Glyphs follow the encoding of the stream Click reports for stderr, and every
message lands on stderr so stdout carries only plans and failure reports.
"""

import io
import sys

import click
import pytest

from recipe_parity.entrypoints.cli.helpers.messages import (
    _supports_character,
    caution_glyph,
    error,
    error_glyph,
    success,
    success_glyph,
    warn,
)

SET_BOLD = "\x1b[1m"
COLORS = {warn: "\x1b[33m", success: "\x1b[32m", error: "\x1b[31m"}


class FakeTTY(io.StringIO):
    """Interactive text stream with a fixed encoding."""

    def __init__(self, encoding: str):
        super().__init__()
        self._encoding = encoding

    @property
    def encoding(self) -> str:
        return self._encoding

    def isatty(self) -> bool:
        return True


@pytest.mark.parametrize(
    "encoding, glyphs",
    [("ascii", ("[!]", "[OK]", "[X]")), ("utf-8", ("⚠️", "✅", "❌"))],
)
def test_glyphs_follow_the_stderr_encoding(monkeypatch, encoding, glyphs):
    stream = FakeTTY(encoding)
    monkeypatch.setattr(click, "get_text_stream", lambda name: stream)
    assert (caution_glyph(), success_glyph(), error_glyph()) == glyphs


def test_the_stream_is_queried_on_every_call(monkeypatch):
    encodings = iter(["ascii", "utf-8"])
    monkeypatch.setattr(click, "get_text_stream", lambda name: FakeTTY(next(encodings)))
    assert _supports_character("✅") is False
    assert _supports_character("✅") is True


@pytest.mark.parametrize("func", [warn, success, error])
def test_messages_are_bold_colored_stderr_lines(monkeypatch, func):
    stream = FakeTTY("ascii")
    monkeypatch.setattr(click, "get_text_stream", lambda name: stream)
    monkeypatch.setattr(sys, "stderr", stream, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)

    func("2 unit(s) skipped")

    out = stream.getvalue()
    assert "2 unit(s) skipped" in out
    assert SET_BOLD in out
    assert COLORS[func] in out


def test_stdout_stays_clean(monkeypatch, capsys):
    monkeypatch.setattr(click, "get_text_stream", lambda name: FakeTTY("utf-8"))
    error("run run-0001: 1 failed")
    captured = capsys.readouterr()
    assert "run run-0001: 1 failed" in captured.err
    assert captured.out == ""
