from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional


class DiagnosticKind(str, Enum):
    NO_CSV_FILES = "no_csv_files"
    MISSING_COLUMN = "missing_column"
    EXTRA_COLUMN = "extra_column"
    ROW_UNPARSABLE = "row_unparsable"
    COLUMN_ORDER = "column_order"
    NO_SUBDIRECTORIES = "no_subdirectories"


_INFO_KINDS = frozenset({DiagnosticKind.COLUMN_ORDER})


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal event observed while consolidating.

    Run-level events carry an empty ``subdirectory``.
    """

    kind: DiagnosticKind
    subdirectory: str
    message: str
    file: Optional[Path] = None
    column: Optional[str] = None
    line: Optional[int] = None

    @property
    def level(self) -> int:
        return logging.INFO if self.kind in _INFO_KINDS else logging.WARNING

    def format(self) -> str:
        parts = [f"[{self.subdirectory}]"] if self.subdirectory else []
        if self.file is not None:
            location = self.file.name
            if self.line is not None:
                location = f"{location}:{self.line}"
            parts.append(location)
        parts.append(self.message)
        return " ".join(parts)


def log_diagnostics(
    diagnostics: Iterable[Diagnostic],
    logger: logging.Logger,
) -> None:
    for diagnostic in diagnostics:
        logger.log(diagnostic.level, "%s", diagnostic.format())
