from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConsolidateError(Exception):
    """Base error carrying the offending filesystem path."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is None:
            return message
        return f"{message} ({self.path})"


class InvalidDelimiterError(ConsolidateError, ValueError):
    """Raised before a run starts when the delimiter is not one ASCII character."""


class RootTraversalError(ConsolidateError):
    """Raised when the root (or a subdirectory listing) cannot be traversed.

    Aborts the whole run.
    """


class JobError(ConsolidateError):
    """Raised when one subdirectory cannot be consolidated.

    The run reports it and moves on to the next subdirectory.
    """

    def __init__(
        self,
        message: str,
        *,
        subdirectory: str,
        path: Optional[Path] = None,
    ) -> None:
        super().__init__(message, path=path)
        self.subdirectory = subdirectory
