import pytest

from csvconsolidate.errors import RootTraversalError
from csvconsolidate.pipeline.discovery import (
    discover_job,
    is_csv,
    list_subdirectories,
    resolve_root,
)


def test_list_subdirectories_sorted_and_immediate_only(tmp_path):
    for name in ("zeta", "alpha", "Mid", "alpha/nested"):
        (tmp_path / name).mkdir(parents=True)
    (tmp_path / "file.csv").write_text("a\n", encoding="utf-8")

    names = [p.name for p in list_subdirectories(tmp_path)]

    assert names == ["Mid", "alpha", "zeta"]


def test_discover_job_collects_csv_files_alphabetically(tmp_path):
    directory = tmp_path / "payments"
    (directory / "sub").mkdir(parents=True)
    for name in ("b.csv", "a.csv", "c.CSV", "notes.txt", "sub/deep.csv"):
        (directory / name).write_text("id\n", encoding="utf-8")
    (directory / "folder.csv").mkdir()

    job = discover_job(directory)

    assert job.name == "payments"
    assert [p.name for p in job.files] == ["a.csv", "b.csv"]


def test_is_csv_is_case_sensitive(tmp_path):
    upper = tmp_path / "x.CSV"
    upper.write_text("", encoding="utf-8")
    lower = tmp_path / "x.csv"
    lower.write_text("", encoding="utf-8")

    assert is_csv(lower)
    assert not is_csv(upper)


def test_resolve_root_rejects_missing_path(tmp_path):
    with pytest.raises(RootTraversalError) as excinfo:
        resolve_root(tmp_path / "missing")
    assert excinfo.value.path == tmp_path / "missing"


def test_resolve_root_rejects_file(tmp_path):
    path = tmp_path / "file.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(RootTraversalError, match="not a directory"):
        resolve_root(path)


def test_unlistable_directory_is_a_traversal_error(tmp_path, monkeypatch):
    directory = tmp_path / "locked"
    directory.mkdir()

    def _deny(self):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(type(directory), "iterdir", _deny)

    with pytest.raises(RootTraversalError, match="cannot list directory"):
        discover_job(directory)
