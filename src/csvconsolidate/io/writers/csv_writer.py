import csv
from pathlib import Path
from typing import Iterable, Optional, Sequence

from csvconsolidate.errors import JobError
from csvconsolidate.io.sinks import AtomicTextFileSink


class CsvFileWriter:
    """Delimited writer over an atomic sink: header first, then projected rows."""

    def __init__(self, dest: Path, *, delimiter: str = ",", encoding: str = "utf-8"):
        self.sink = AtomicTextFileSink(dest, encoding=encoding)
        self.writer = csv.writer(
            self.sink.fh,
            delimiter=delimiter,
            quoting=csv.QUOTE_MINIMAL,
            lineterminator="\n",
        )
        self.rows_written = 0

    @property
    def file_path(self) -> Optional[Path]:
        return self.sink.file_path

    def write_header(self, header: Sequence[str]) -> None:
        self.writer.writerow(header)

    def write(self, row: Sequence[str]) -> None:
        self.writer.writerow(row)
        self.rows_written += 1

    def close(self) -> None:
        self.sink.close()

    def abort(self) -> None:
        self.sink.abort()


def output_path_for(output_dir: Path, subdirectory: str) -> Path:
    return output_dir / f"{subdirectory}.csv"


def write_consolidated(
    output_dir: Path,
    subdirectory: str,
    header: Sequence[str],
    rows: Iterable[Sequence[str]],
    *,
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> Path:
    """Persist one subdirectory's rows to ``<output_dir>/<subdirectory>.csv``.

    Any failure removes the temp file, keeps the previous output intact and
    surfaces as ``JobError``.
    """
    dest = output_path_for(output_dir, subdirectory)
    try:
        writer = CsvFileWriter(dest, delimiter=delimiter, encoding=encoding)
    except OSError as exc:
        raise JobError(
            f"cannot create temp file for output: {exc}",
            subdirectory=subdirectory,
            path=dest,
        ) from exc

    try:
        writer.write_header(header)
        for row in rows:
            writer.write(row)
    except (OSError, csv.Error, UnicodeError) as exc:
        writer.abort()
        raise JobError(
            f"write failed: {exc}", subdirectory=subdirectory, path=writer.sink.tmp_path
        ) from exc
    except BaseException:
        writer.abort()
        raise

    try:
        writer.close()
    except OSError as exc:
        raise JobError(
            f"cannot move output into place: {exc}",
            subdirectory=subdirectory,
            path=dest,
        ) from exc
    return dest
