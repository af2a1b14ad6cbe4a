from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class AtomicTextFileSink:
    """Text sink that becomes visible at ``dest`` only when closed successfully.

    Writes go to a uniquely named temp file in the destination directory so the
    final ``os.replace`` stays on one filesystem. ``abort`` discards the temp
    file and leaves any existing ``dest`` untouched.
    """

    def __init__(self, dest: Path, *, encoding: str = "utf-8") -> None:
        self.dest = dest
        self.tmp_path: Optional[Path] = None
        self._closed = False
        self.dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(
            mode="w",
            encoding=encoding,
            newline="",
            dir=str(self.dest.parent),
            prefix=f".{self.dest.name}.",
            suffix=".tmp",
            delete=False,
        )
        self.tmp_path = Path(tmp.name)
        self.fh = tmp

    @property
    def file_path(self) -> Optional[Path]:
        return self.dest

    def write_text(self, text: str) -> None:
        self.fh.write(text)

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.fh.flush()
            os.fsync(self.fh.fileno())
            self.fh.close()
            os.replace(self.tmp_path, self.dest)
        except BaseException:
            self.abort()
            raise
        self._closed = True

    def abort(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.fh.close()
        except OSError:
            logger.debug("closing %s failed during abort", self.tmp_path, exc_info=True)
        try:
            self.tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("could not remove temp file %s", self.tmp_path)

    def __enter__(self) -> "AtomicTextFileSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
