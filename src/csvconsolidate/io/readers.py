from __future__ import annotations

import codecs
import csv
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

RowErrorHandler = Callable[[int, Exception], None]

# surrogateescape maps each undecodable byte 0x80-0xff to U+DC80-U+DCFF.
_ESCAPED_BYTE = re.compile("[\udc80-\udcff]")


class HeaderReadError(ValueError):
    """Raised when the first record of a CSV file cannot be parsed or decoded."""


class RowDecodeError(ValueError):
    """A data record holding bytes the input encoding cannot decode."""


def _has_undecodable(cells: Sequence[str]) -> bool:
    return any(_ESCAPED_BYTE.search(cell) for cell in cells)


def reading_encoding(encoding: str) -> str:
    """Plain UTF-8 reads as utf-8-sig so a BOM never reaches the parser."""
    if codecs.lookup(encoding).name == "utf-8":
        return "utf-8-sig"
    return encoding


class CsvRecordReader:
    """Sequential header-then-rows access over one open CSV handle."""

    def __init__(self, path: Path, reader) -> None:
        self.path = path
        self._reader = reader
        self._header: Optional[list[str]] = None

    def header(self) -> list[str]:
        """Return the first record; an empty file yields an empty header."""
        if self._header is None:
            try:
                header = next(self._reader, [])
            except csv.Error as exc:
                raise HeaderReadError(f"unparsable header: {exc}") from exc
            if _has_undecodable(header):
                raise HeaderReadError("header contains bytes the input encoding cannot decode")
            self._header = header
        return self._header

    def rows(self, on_error: Optional[RowErrorHandler] = None) -> Iterator[list[str]]:
        """Yield data records after the header.

        Blank lines are skipped. A record the parser rejects, or one holding
        undecodable bytes, is reported through ``on_error`` with its line number
        and skipped; iteration carries on with the next line.
        """
        self.header()
        while True:
            try:
                row = next(self._reader)
            except StopIteration:
                return
            except csv.Error as exc:
                if on_error is not None:
                    on_error(self._reader.line_num, exc)
                continue
            if _has_undecodable(row):
                if on_error is not None:
                    on_error(
                        self._reader.line_num,
                        RowDecodeError("bytes the input encoding cannot decode"),
                    )
                continue
            if row:
                yield row


@contextmanager
def open_csv(
    path: Path,
    *,
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> Iterator[CsvRecordReader]:
    """Open a CSV file for reading; the handle is closed on every exit path.

    Undecodable bytes are escaped rather than raised so a bad record only
    costs that record.
    """
    with path.open(
        "r",
        encoding=reading_encoding(encoding),
        errors="surrogateescape",
        newline="",
    ) as fh:
        reader = csv.reader(fh, delimiter=delimiter, strict=True)
        yield CsvRecordReader(path, reader)
