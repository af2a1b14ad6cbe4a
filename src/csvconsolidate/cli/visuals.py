from contextlib import contextmanager
import logging
import sys
from typing import Iterator, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from csvconsolidate.pipeline.aggregate import JobResult
from csvconsolidate.pipeline.runner import RunObserver, RunReport

logger = logging.getLogger(__name__)


def _is_tty() -> bool:
    try:
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    except Exception:
        return False


class VisualsBackend:
    """Interface for visuals backends.

    - observe() is a contextmanager yielding the RunObserver for one run.
    - on_run_complete returns True if the backend rendered the summary, False
      to let the caller log it.
    """

    @contextmanager
    def observe(self) -> Iterator[RunObserver]:
        yield RunObserver()

    def on_run_complete(self, report: RunReport) -> bool:
        return False


class _TqdmObserver(RunObserver):
    def __init__(self) -> None:
        self._bar: Optional[tqdm] = None

    def on_run_start(self, total: int) -> None:
        self._bar = tqdm(total=total, unit="dir", desc="Consolidating", leave=False)

    def on_job_start(self, name: str, idx: int, total: int) -> None:
        if self._bar is not None:
            self._bar.set_postfix_str(name)

    def on_job_end(self, result: JobResult) -> None:
        if self._bar is not None:
            self._bar.update(1)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class _TqdmBackend(VisualsBackend):
    @contextmanager
    def observe(self) -> Iterator[RunObserver]:
        observer = _TqdmObserver()
        try:
            with logging_redirect_tqdm():
                yield observer
        finally:
            observer.close()


class _RichObserver(RunObserver):
    def __init__(self, progress) -> None:
        self._progress = progress
        self._task_id = None

    def on_run_start(self, total: int) -> None:
        self._task_id = self._progress.add_task("Consolidating", total=total)

    def on_job_start(self, name: str, idx: int, total: int) -> None:
        if self._task_id is not None:
            self._progress.update(
                self._task_id, description=f"[{idx}/{total}] {name}"
            )

    def on_job_end(self, result: JobResult) -> None:
        if self._task_id is not None:
            self._progress.advance(self._task_id)


class _RichBackend(VisualsBackend):
    def __init__(self) -> None:
        from rich.console import Console

        self._console = Console(stderr=True)

    @contextmanager
    def observe(self) -> Iterator[RunObserver]:
        from rich.progress import (
            BarColumn,
            MofNCompleteColumn,
            Progress,
            SpinnerColumn,
            TextColumn,
            TimeElapsedColumn,
        )

        progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
            transient=True,
        )
        with progress:
            yield _RichObserver(progress)

    def on_run_complete(self, report: RunReport) -> bool:
        from rich.table import Table

        table = Table(title=f"Consolidated into {report.output}")
        table.add_column("Subdirectory")
        table.add_column("Status")
        table.add_column("Files", justify="right")
        table.add_column("Rows", justify="right")
        table.add_column("Warnings", justify="right")
        for job in report.jobs:
            status = "written" if job.written else job.state.value
            table.add_row(
                job.subdirectory,
                status,
                str(job.files_read),
                str(job.rows_written),
                str(len(job.diagnostics)),
            )
        self._console.print(table)
        return True


class _OffBackend(VisualsBackend):
    pass


def get_visuals_backend(provider: Optional[str]) -> VisualsBackend:
    name = (provider or "auto").lower()
    if name == "off":
        return _OffBackend()
    if name == "tqdm":
        return _TqdmBackend()
    if name == "rich":
        return _RichBackend()
    # auto
    if _is_tty():
        return _RichBackend()
    return _OffBackend()


def summary_line(report: RunReport) -> str:
    return (
        f"{len(report.succeeded)} written, {len(report.skipped)} skipped, "
        f"{len(report.failed)} aborted; {report.rows_written} rows, "
        f"{len(report.diagnostics)} warning(s)"
    )


def render_summary(backend: VisualsBackend, report: RunReport) -> None:
    try:
        handled = backend.on_run_complete(report)
    except Exception:
        logger.debug("visuals summary failed", exc_info=True)
        handled = False
    if not handled:
        logger.info("Summary: %s", summary_line(report))
