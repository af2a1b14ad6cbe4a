import logging

import pytest

from csvconsolidate.domain.diagnostics import DiagnosticKind
from csvconsolidate.errors import RootTraversalError
from csvconsolidate.pipeline.aggregate import JobState
from csvconsolidate.pipeline.runner import RunObserver, consolidate, run_job
from csvconsolidate.pipeline.discovery import discover_job


class _RecordingObserver(RunObserver):
    def __init__(self):
        self.events = []

    def on_run_start(self, total):
        self.events.append(("start", total))

    def on_job_start(self, name, idx, total):
        self.events.append(("job", name, idx, total))

    def on_job_end(self, result):
        self.events.append(("end", result.subdirectory, result.state))


def test_consolidate_writes_one_file_per_subdirectory(make_tree, run_config):
    root = make_tree(
        {
            "b_dir": {"x.csv": [["k"], ["1"]]},
            "a_dir": {"y.csv": [["k"], ["2"]]},
        }
    )
    config = run_config(root)

    report = consolidate(config)

    assert [job.subdirectory for job in report.jobs] == ["a_dir", "b_dir"]
    assert sorted(p.name for p in config.output.iterdir()) == ["a_dir.csv", "b_dir.csv"]
    assert report.rows_written == 2


def test_consolidate_skips_directories_without_csv(make_tree, run_config, caplog):
    root = make_tree({"good": {"a.csv": [["id"], ["1"]]}})
    (root / "empty").mkdir()
    (root / "empty" / "readme.txt").write_text("nothing", encoding="utf-8")
    config = run_config(root)

    with caplog.at_level(logging.WARNING):
        report = consolidate(config)

    assert [job.state for job in report.jobs] == [JobState.SKIPPED, JobState.FINALIZED]
    assert [d.kind for d in report.diagnostics] == [DiagnosticKind.NO_CSV_FILES]
    assert not (config.output / "empty.csv").exists()
    assert "[empty] skipped: no CSV files" in caplog.text


def test_consolidate_continues_after_job_failure(tmp_path, make_tree, run_config, caplog):
    root = make_tree({"a": {"x.csv": [["id"], ["1"]]}, "c": {"x.csv": [["id"], ["3"]]}})
    (root / "b").mkdir()
    (root / "b" / "x.csv").write_bytes(b"\xff\xfe\x00")
    config = run_config(root)

    with caplog.at_level(logging.ERROR):
        report = consolidate(config)

    assert [job.state for job in report.jobs] == [
        JobState.FINALIZED,
        JobState.ABORTED,
        JobState.FINALIZED,
    ]
    [aborted] = report.failed
    assert aborted.error is not None
    assert aborted.destination is None
    assert not (config.output / "b.csv").exists()
    assert "[b] aborted" in caplog.text


def test_consolidate_aborted_job_keeps_previous_output(make_tree, run_config):
    root = make_tree({"b": {"x.csv": [["id"], ["1"]]}})
    (root / "b" / "y.csv").write_bytes(b"\xff\xfe\x00")
    config = run_config(root)
    config.output.mkdir()
    (config.output / "b.csv").write_text("id\nold\n", encoding="utf-8")

    report = consolidate(config)

    assert report.jobs[0].state is JobState.ABORTED
    assert (config.output / "b.csv").read_text(encoding="utf-8") == "id\nold\n"


def test_consolidate_missing_root_raises(tmp_path, run_config):
    with pytest.raises(RootTraversalError):
        consolidate(run_config(tmp_path / "nope"))


def test_consolidate_without_subdirectories_returns_empty_report(tmp_path, run_config, caplog):
    root = tmp_path / "data"
    root.mkdir()
    (root / "loose.csv").write_text("id\n1\n", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        report = consolidate(run_config(root))

    assert report.jobs == []
    [notice] = report.notices
    assert notice.kind is DiagnosticKind.NO_SUBDIRECTORIES
    assert report.diagnostics == [notice]
    assert report.succeeded == []
    assert "No subdirectories" in caplog.text


def test_consolidate_ignores_output_directory_inside_root(make_tree, run_config):
    root = make_tree({"a": {"x.csv": [["id"], ["1"]]}})
    config = run_config(root, output=root / "_out")

    consolidate(config)
    report = consolidate(config)

    assert [job.subdirectory for job in report.jobs] == ["a"]
    assert sorted(p.name for p in (root / "_out").iterdir()) == ["a.csv"]


def test_consolidate_notifies_observer(make_tree, run_config):
    root = make_tree({"a": {"x.csv": [["id"], ["1"]]}, "b": {}})
    observer = _RecordingObserver()

    consolidate(run_config(root), observer=observer)

    assert observer.events == [
        ("start", 2),
        ("job", "a", 1, 2),
        ("end", "a", JobState.FINALIZED),
        ("job", "b", 2, 2),
        ("end", "b", JobState.SKIPPED),
    ]


def test_run_job_uses_configured_delimiter(make_tree, run_config):
    root = make_tree({"semi": {"a.csv": [["id", "v"], ["1", "x,y"]]}}, delimiter=";")
    config = run_config(root, delimiter=";")

    result = run_job(discover_job(root / "semi"), config)

    assert result.written
    assert result.destination.read_text(encoding="utf-8") == "id;v\n1;x,y\n"


def test_consolidate_keeps_job_when_a_row_cannot_be_decoded(tmp_path, run_config):
    source = tmp_path / "data" / "people"
    source.mkdir(parents=True)
    (source / "a.csv").write_bytes(b"id,name\n1,ann\n2,caf\xe9\n3,bob\n")

    report = consolidate(run_config(tmp_path / "data"))

    [result] = report.succeeded
    assert result.state is JobState.FINALIZED
    assert report.failed == []
    assert result.rows_written == 2
    assert [d.kind for d in report.diagnostics] == [DiagnosticKind.ROW_UNPARSABLE]
    assert result.destination.read_text(encoding="utf-8") == "id,name\n1,ann\n3,bob\n"
