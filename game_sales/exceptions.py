"""
Exceptions
==========

Error taxonomy for the game sales pipeline.

Missing or unreadable files surface as the built-in ``FileNotFoundError`` /
``OSError``; everything specific to this package derives from
``GameSalesError``.
"""

from typing import Optional


class GameSalesError(Exception):
    """Base class for all pipeline-related errors."""


class SchemaError(GameSalesError):
    """A row does not match the column schema (count or type)."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[str] = None
    ):
        super().__init__(message)
        self.line = line
        self.column = column


class CorruptArtifactError(GameSalesError):
    """A model artifact is unreadable, truncated or incompatible."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class UnseenCategoryWarning(UserWarning):
    """A categorical value was not part of the training vocabulary."""
