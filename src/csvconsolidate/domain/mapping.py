from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

from csvconsolidate.domain.diagnostics import Diagnostic, DiagnosticKind
from csvconsolidate.domain.header import CanonicalHeader

ColumnMapping = Tuple[Optional[int], ...]


def build_mapping(canonical: CanonicalHeader, source: Sequence[str]) -> ColumnMapping:
    """Map each canonical position to the first source index with the same name.

    Names compare exactly (case-sensitive). Positions without a match hold None.
    """
    first_index: dict[str, int] = {}
    for idx, name in enumerate(source):
        first_index.setdefault(name, idx)
    return tuple(first_index.get(name) for name in canonical)


def project_row(mapping: ColumnMapping, row: Sequence[str]) -> list[str]:
    """Rewrite a source row into canonical order.

    Absent columns and cells past the end of a short row become "". Cells the
    mapping never references (extra columns, trailing overflow) are dropped.
    """
    width = len(row)
    return [
        row[idx] if idx is not None and idx < width else ""
        for idx in mapping
    ]


def header_diagnostics(
    canonical: CanonicalHeader,
    source: Sequence[str],
    mapping: ColumnMapping,
    *,
    subdirectory: str,
    file: Path,
) -> list[Diagnostic]:
    """Report canonical columns a file lacks and file columns that will be dropped."""
    diagnostics: list[Diagnostic] = []
    for name, idx in zip(canonical, mapping):
        if idx is None:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.MISSING_COLUMN,
                    subdirectory=subdirectory,
                    file=file,
                    column=name,
                    message=f"missing column '{name}'; cells left empty",
                )
            )

    referenced = {idx for idx in mapping if idx is not None}
    for idx, name in enumerate(source):
        if idx not in referenced:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.EXTRA_COLUMN,
                    subdirectory=subdirectory,
                    file=file,
                    column=name,
                    message=f"extra column '{name}' (position {idx + 1}) dropped",
                )
            )

    if not diagnostics and tuple(source) != tuple(canonical):
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.COLUMN_ORDER,
                subdirectory=subdirectory,
                file=file,
                message="column order differs; reordering to canonical",
            )
        )
    return diagnostics


def reconcile_header(
    canonical: CanonicalHeader,
    source: Sequence[str],
    *,
    subdirectory: str,
    file: Path,
) -> tuple[ColumnMapping, list[Diagnostic]]:
    mapping = build_mapping(canonical, source)
    return mapping, header_diagnostics(
        canonical, source, mapping, subdirectory=subdirectory, file=file
    )
