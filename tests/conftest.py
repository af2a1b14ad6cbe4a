from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Sequence

import pytest

from csvconsolidate.config.run import ConsolidateConfig


def _render(rows: Iterable[Sequence[str]], delimiter: str) -> str:
    return "".join(delimiter.join(row) + "\n" for row in rows)


@pytest.fixture
def write_csv():
    """Return a helper that writes rows as simple delimited text (no quoting)."""

    def _write(path: Path, rows: Iterable[Sequence[str]], *, delimiter: str = ",", bom: bool = False) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = _render(rows, delimiter)
        if bom:
            text = "\ufeff" + text
        path.write_text(text, encoding="utf-8", newline="")
        return path

    return _write


@pytest.fixture
def make_tree(tmp_path: Path, write_csv):
    """Build ``root/<subdir>/<file>`` from a nested mapping of rows."""

    def _make(layout: Mapping[str, Mapping[str, Sequence[Sequence[str]]]], *, delimiter: str = ",") -> Path:
        root = tmp_path / "data"
        root.mkdir(exist_ok=True)
        for subdir, files in layout.items():
            (root / subdir).mkdir(exist_ok=True)
            for name, rows in files.items():
                write_csv(root / subdir / name, rows, delimiter=delimiter)
        return root

    return _make


@pytest.fixture
def run_config(tmp_path: Path):
    def _config(root: Path, **overrides) -> ConsolidateConfig:
        values = {"root": root, "output": tmp_path / "output", **overrides}
        return ConsolidateConfig(**values)

    return _config
