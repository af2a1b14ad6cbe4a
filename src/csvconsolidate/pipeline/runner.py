from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from csvconsolidate.config.run import ConsolidateConfig
from csvconsolidate.domain.diagnostics import Diagnostic, DiagnosticKind, log_diagnostics
from csvconsolidate.errors import JobError
from csvconsolidate.io.writers.csv_writer import write_consolidated
from csvconsolidate.pipeline.aggregate import JobResult, JobState, SubdirectoryAggregator
from csvconsolidate.pipeline.discovery import (
    SubdirectoryJob,
    discover_job,
    list_subdirectories,
    resolve_root,
)

logger = logging.getLogger(__name__)


class RunObserver:
    """Hooks for progress displays; the default does nothing."""

    def on_run_start(self, total: int) -> None:
        pass

    def on_job_start(self, name: str, idx: int, total: int) -> None:
        pass

    def on_job_end(self, result: JobResult) -> None:
        pass


@dataclass
class RunReport:
    root: Path
    output: Path
    jobs: list[JobResult] = field(default_factory=list)
    notices: list[Diagnostic] = field(default_factory=list)

    @property
    def succeeded(self) -> list[JobResult]:
        return [job for job in self.jobs if job.written]

    @property
    def skipped(self) -> list[JobResult]:
        return [job for job in self.jobs if job.state is JobState.SKIPPED]

    @property
    def failed(self) -> list[JobResult]:
        return [job for job in self.jobs if job.state is JobState.ABORTED]

    @property
    def rows_written(self) -> int:
        return sum(job.rows_written for job in self.succeeded)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.notices + [d for job in self.jobs for d in job.diagnostics]


def run_job(job: SubdirectoryJob, config: ConsolidateConfig) -> JobResult:
    """Consolidate one subdirectory. Job-level failures end up on the result."""
    aggregator = SubdirectoryAggregator(
        job, delimiter=config.delimiter, encoding=config.input_encoding
    )
    if not job.files:
        aggregator.skip()
        return aggregator.result()

    try:
        aggregator.establish_header()
        aggregator.accumulate()
        output = aggregator.finalize()
        destination = write_consolidated(
            config.output,
            job.name,
            output.header,
            output.rows,
            delimiter=config.delimiter,
            encoding=config.output_encoding,
        )
    except JobError as exc:
        aggregator.abort()
        return aggregator.result(error=exc)
    return aggregator.result(destination=destination, rows_written=len(output.rows))


def _report_job(result: JobResult) -> None:
    log_diagnostics(result.diagnostics, logger)
    if result.state is JobState.ABORTED:
        logger.error("[%s] aborted, no output written: %s", result.subdirectory, result.error)
    elif result.written:
        logger.info("Wrote: %s (%d rows)", result.destination, result.rows_written)


def consolidate(
    config: ConsolidateConfig,
    observer: Optional[RunObserver] = None,
) -> RunReport:
    """Consolidate every immediate subdirectory of ``config.root``.

    Raises ``RootTraversalError`` when the root or a subdirectory listing cannot
    be read; every other failure is confined to its subdirectory.
    """
    observer = observer or RunObserver()
    root = resolve_root(config.root)
    output = config.output.resolve()
    report = RunReport(root=root, output=output)

    subdirs = [path for path in list_subdirectories(root) if path.resolve() != output]
    if not subdirs:
        notice = Diagnostic(
            DiagnosticKind.NO_SUBDIRECTORIES,
            subdirectory="",
            message=f"No subdirectories under {root}",
        )
        report.notices.append(notice)
        log_diagnostics(report.notices, logger)
        return report

    observer.on_run_start(len(subdirs))
    for idx, directory in enumerate(subdirs, start=1):
        observer.on_job_start(directory.name, idx, len(subdirs))
        job = discover_job(directory)
        logger.debug("[%s] %d CSV file(s)", job.name, len(job.files))
        result = run_job(job, config)
        _report_job(result)
        report.jobs.append(result)
        observer.on_job_end(result)

    logger.info("All done. Outputs in: %s", output)
    return report
