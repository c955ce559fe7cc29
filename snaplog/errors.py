# File: snaplog/errors.py
"""Exceptions raised (or carried) by the snaplog parsing core."""

from __future__ import annotations


class SnaplogError(Exception):
    """Base class for all snaplog errors."""


class UnsupportedVariant(SnaplogError):
    """An extractor was invoked on an expression of the wrong command type."""

    def __init__(self, extractor: str, command_type, expected=()):
        self.extractor = extractor
        self.command_type = command_type
        self.expected = tuple(expected)
        names = ", ".join(t.name for t in self.expected) or "?"
        super().__init__(
            f"{extractor} can not run on a {command_type.name} expression (expects {names})"
        )


class PayloadFormatError(SnaplogError):
    """A message payload could not be read as a stream of hex byte pairs."""


class PatternLoadError(SnaplogError):
    """A pattern override file is unreadable or holds an invalid regex."""
