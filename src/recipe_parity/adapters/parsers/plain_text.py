"""Reference backend that treats source files as plain text.

`PlainTextParser` does no real language parsing. Its tree handle is an
immutable `SourceFile`, and recipes are objects exposing
``visit(source_file) -> SourceFile``. It exists so catalogs can be exercised
end to end without a real parser on the path, and so several instances,
each advertising a different language level, can stand in for a family of
version-specific backends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from recipe_parity.interfaces.parser import Parser

logger = logging.getLogger(__name__)

# Features advertised from a given language level upwards.
LANGUAGE_FEATURES: dict[int, frozenset[str]] = {
    8: frozenset({"generics", "annotations", "lambdas", "imports"}),
    9: frozenset({"modules"}),
    10: frozenset({"var"}),
    11: frozenset({"var-lambda-parameters"}),
}


def language_features(level: int) -> frozenset[str]:
    """Return the features available at ``level``."""
    features: frozenset[str] = frozenset()
    for since, added in LANGUAGE_FEATURES.items():
        if level >= since:
            features |= added
    return features


@dataclass(frozen=True)
class SourceFile:
    """Immutable tree handle produced by `PlainTextParser`."""

    text: str
    language_level: int
    markers: tuple[str, ...] = field(default=())

    @property
    def lines(self) -> list[str]:
        """The text split into lines, without line endings."""
        return self.text.split("\n")

    def with_text(self, text: str) -> SourceFile:
        """Return a copy holding ``text``."""
        return replace(self, text=text)

    def with_marker(self, marker: str) -> SourceFile:
        """Return a copy with ``marker`` appended to the diagnostics."""
        return replace(self, markers=(*self.markers, marker))


class PlainTextParser(Parser):
    """Plain-text backend for a single language level.

    Args:
        language_level: The language level this instance reports, e.g. ``8``.
        encoding: Sources that cannot be encoded with this codec are rejected,
            the way a compiler configured with a charset would reject them.
    """

    def __init__(self, language_level: int, encoding: str = "utf-8") -> None:
        self.language_level = language_level
        self.encoding = encoding
        self._parsed_since_reset = 0

    def __repr__(self) -> str:
        return f"PlainTextParser(language_level={self.language_level})"

    @property
    def features(self) -> frozenset[str]:
        """Features this instance supports."""
        return language_features(self.language_level)

    @property
    def parsed_since_reset(self) -> int:
        """Number of sources parsed since the last `reset`."""
        return self._parsed_since_reset

    def parse(self, source: str) -> SourceFile:
        source.encode(self.encoding)  # raises UnicodeEncodeError
        self._parsed_since_reset += 1
        logger.debug(
            "Parsed %d characters at level %d", len(source), self.language_level
        )
        return SourceFile(text=source, language_level=self.language_level)

    def print(self, tree: SourceFile) -> str:
        return tree.text

    def apply_recipe(self, tree: SourceFile, recipe: Any) -> SourceFile:
        if not hasattr(recipe, "visit"):
            raise TypeError(
                f"{type(recipe).__name__} is not a plain-text recipe (no visit method)"
            )
        result = recipe.visit(tree)
        if not isinstance(result, SourceFile):
            raise TypeError(
                f"{type(recipe).__name__}.visit returned {type(result).__name__}, "
                "expected SourceFile"
            )
        return result

    def reset(self) -> None:
        self._parsed_since_reset = 0

    def diagnostics(self, tree: SourceFile) -> tuple[str, ...]:
        return tree.markers
