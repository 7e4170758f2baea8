"""Reference parser backends."""

from .plain_text import PlainTextParser, SourceFile, language_features

__all__ = ["PlainTextParser", "SourceFile", "language_features"]
