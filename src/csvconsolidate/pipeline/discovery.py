from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from csvconsolidate.errors import RootTraversalError

CSV_SUFFIX = ".csv"


@dataclass(frozen=True)
class SubdirectoryJob:
    """One immediate child of the root and the CSV files it holds, in order."""

    directory: Path
    files: Tuple[Path, ...]

    @property
    def name(self) -> str:
        return self.directory.name


def is_csv(path: Path) -> bool:
    """Regular file whose name ends in ``.csv`` (case-sensitive)."""
    return path.name.endswith(CSV_SUFFIX) and path.is_file()


def _sorted_children(directory: Path) -> list[Path]:
    try:
        children = list(directory.iterdir())
    except OSError as exc:
        raise RootTraversalError(
            f"cannot list directory: {exc.strerror or exc}", path=directory
        ) from exc
    return sorted(children, key=lambda p: p.name)


def resolve_root(root: Path) -> Path:
    if not root.exists():
        raise RootTraversalError("root directory does not exist", path=root)
    if not root.is_dir():
        raise RootTraversalError("root path is not a directory", path=root)
    return root.resolve()


def list_subdirectories(root: Path) -> list[Path]:
    """Immediate child directories of ``root`` in alphabetical order."""
    return [child for child in _sorted_children(root) if child.is_dir()]


def discover_job(directory: Path) -> SubdirectoryJob:
    """Collect the CSV files directly inside ``directory`` (no recursion)."""
    files = tuple(child for child in _sorted_children(directory) if is_csv(child))
    return SubdirectoryJob(directory=directory, files=files)
