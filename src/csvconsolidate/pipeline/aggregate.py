from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from csvconsolidate.domain.diagnostics import Diagnostic, DiagnosticKind
from csvconsolidate.domain.header import CanonicalHeader, normalize_header
from csvconsolidate.domain.mapping import project_row, reconcile_header
from csvconsolidate.errors import JobError
from csvconsolidate.io.readers import HeaderReadError, open_csv
from csvconsolidate.pipeline.discovery import SubdirectoryJob

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    DISCOVERED = "discovered"
    HEADER_ESTABLISHED = "header_established"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"
    SKIPPED = "skipped"
    ABORTED = "aborted"


_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.DISCOVERED: frozenset(
        {JobState.HEADER_ESTABLISHED, JobState.SKIPPED, JobState.ABORTED}
    ),
    JobState.HEADER_ESTABLISHED: frozenset({JobState.ACCUMULATING, JobState.ABORTED}),
    JobState.ACCUMULATING: frozenset({JobState.FINALIZED, JobState.ABORTED}),
    # the writer runs after finalization and may still fail
    JobState.FINALIZED: frozenset({JobState.ABORTED}),
    JobState.SKIPPED: frozenset(),
    JobState.ABORTED: frozenset(),
}


@dataclass
class JobOutput:
    """Canonical header plus projected rows, owned by a single job."""

    header: CanonicalHeader
    rows: list[list[str]] = field(default_factory=list)


@dataclass
class JobResult:
    subdirectory: str
    state: JobState
    destination: Optional[Path] = None
    files_read: int = 0
    rows_written: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: Optional[JobError] = None

    @property
    def written(self) -> bool:
        return self.state is JobState.FINALIZED and self.destination is not None


class SubdirectoryAggregator:
    """Drive one job from discovery to a finalized ``JobOutput``.

    States only move forward: Discovered -> HeaderEstablished -> Accumulating
    -> Finalized, with Skipped (no files) and Aborted (fatal job error) as
    terminal exits.
    """

    def __init__(
        self,
        job: SubdirectoryJob,
        *,
        delimiter: str = ",",
        encoding: str = "utf-8",
    ) -> None:
        self.job = job
        self.delimiter = delimiter
        self.encoding = encoding
        self.state = JobState.DISCOVERED
        self.diagnostics: list[Diagnostic] = []
        self.files_read = 0
        self._output: Optional[JobOutput] = None

    def _advance(self, target: JobState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"job '{self.job.name}' cannot move from {self.state.value} to {target.value}"
            )
        logger.debug("[%s] %s -> %s", self.job.name, self.state.value, target.value)
        self.state = target

    def skip(self) -> None:
        self._advance(JobState.SKIPPED)
        self.diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.NO_CSV_FILES,
                subdirectory=self.job.name,
                message="skipped: no CSV files",
            )
        )

    def abort(self) -> None:
        self._output = None
        self._advance(JobState.ABORTED)

    def _job_error(self, message: str, path: Path, exc: BaseException) -> JobError:
        return JobError(f"{message}: {exc}", subdirectory=self.job.name, path=path)

    def establish_header(self) -> CanonicalHeader:
        first = self.job.files[0]
        try:
            with open_csv(first, delimiter=self.delimiter, encoding=self.encoding) as reader:
                header = normalize_header(reader.header())
        except (OSError, UnicodeError, HeaderReadError) as exc:
            raise self._job_error("cannot read header", first, exc) from exc
        self._output = JobOutput(header=header)
        self._advance(JobState.HEADER_ESTABLISHED)
        logger.debug("[%s] canonical header from %s: %s", self.job.name, first.name, list(header))
        return header

    def accumulate(self) -> None:
        """Append every file's projected rows, files in order, rows in order."""
        self._advance(JobState.ACCUMULATING)
        assert self._output is not None
        for path in self.job.files:
            self._append_file(path, self._output)

    def _append_file(self, path: Path, output: JobOutput) -> None:
        name = self.job.name

        def _on_row_error(line: int, exc: Exception) -> None:
            self.diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.ROW_UNPARSABLE,
                    subdirectory=name,
                    file=path,
                    line=line,
                    message=f"unparsable row skipped: {exc}",
                )
            )

        try:
            with open_csv(path, delimiter=self.delimiter, encoding=self.encoding) as reader:
                try:
                    source = normalize_header(reader.header())
                except (UnicodeError, HeaderReadError) as exc:
                    raise self._job_error("cannot read header", path, exc) from exc
                mapping, notes = reconcile_header(
                    output.header, source, subdirectory=name, file=path
                )
                self.diagnostics.extend(notes)
                before = len(output.rows)
                for row in reader.rows(on_error=_on_row_error):
                    output.rows.append(project_row(mapping, row))
        except JobError:
            raise
        except (OSError, UnicodeError) as exc:
            raise self._job_error("cannot read file", path, exc) from exc
        self.files_read += 1
        logger.debug("[%s] %s: %d rows", name, path.name, len(output.rows) - before)

    def finalize(self) -> JobOutput:
        """Hand the accumulated output over; the aggregator keeps no reference."""
        self._advance(JobState.FINALIZED)
        output, self._output = self._output, None
        assert output is not None
        return output

    def result(self, **extra) -> JobResult:
        return JobResult(
            subdirectory=self.job.name,
            state=self.state,
            files_read=self.files_read,
            diagnostics=list(self.diagnostics),
            **extra,
        )
