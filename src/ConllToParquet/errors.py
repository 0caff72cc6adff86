"""Exception hierarchy shared across corpus parsing, mapping resolution, and output.

The conversion is an offline batch job: every failure below aborts the whole
run. The hierarchy exists so the CLI can render one consistent diagnostic and
so callers can tell input problems apart from broken joins or failed commits.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

__all__ = [
    "ConversionError",
    "ConfigurationError",
    "CorpusReadError",
    "MappingReadError",
    "UnresolvedTitleError",
    "DatasetWriteError",
    "SchemaMismatchError",
]


class ConversionError(RuntimeError):
    """Base exception for failures that abort a conversion run."""


class ConfigurationError(ConversionError):
    """Raised when settings or CLI inputs are invalid."""


class CorpusReadError(ConversionError):
    """Raised when the CoNLL token stream cannot be opened or decoded."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class MappingReadError(ConversionError):
    """Raised when the title mapping stream cannot be read or deserialized."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class UnresolvedTitleError(ConversionError):
    """Raised when a candidate mention's title has no resolved identifier."""

    def __init__(self, title: str, *, document_id: Optional[int] = None) -> None:
        location = f" in document {document_id}" if document_id is not None else ""
        super().__init__(f"No identifier resolved for title {title!r}{location}")
        self.title = title
        self.document_id = document_id


class DatasetWriteError(ConversionError):
    """Raised when a Parquet file cannot be committed to its destination."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class SchemaMismatchError(ValueError):
    """Raised when an Arrow table does not match the fixed dataset schema."""
