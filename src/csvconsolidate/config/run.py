from __future__ import annotations

import codecs
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from csvconsolidate.config.options import (
    DEFAULT_DELIMITER,
    DEFAULT_ENCODING,
    DEFAULT_OUTPUT,
    DEFAULT_ROOT,
)
from csvconsolidate.errors import InvalidDelimiterError

# Characters the CSV dialect reserves for quoting and record boundaries.
_RESERVED_DELIMITERS = frozenset({'"', "\r", "\n"})


def validate_delimiter(value: object) -> str:
    """Return ``value`` when it is exactly one usable ASCII character."""
    text = value if isinstance(value, str) else str(value)
    if len(text) != 1 or not text.isascii():
        raise InvalidDelimiterError(
            f"delimiter must be a single ASCII character, got {text!r}"
        )
    if text in _RESERVED_DELIMITERS:
        raise InvalidDelimiterError(f"delimiter {text!r} cannot separate CSV fields")
    return text


class ConsolidateConfig(BaseModel):
    """Resolved settings for one consolidation run."""

    root: Path = Field(
        default=Path(DEFAULT_ROOT),
        description="Directory whose immediate subdirectories are consolidated.",
    )
    output: Path = Field(
        default=Path(DEFAULT_OUTPUT),
        description="Directory receiving one <subdirectory>.csv per job.",
    )
    delimiter: str = Field(
        default=DEFAULT_DELIMITER,
        description="Single ASCII field delimiter used to read and write.",
    )
    input_encoding: str = Field(default=DEFAULT_ENCODING)
    output_encoding: str = Field(default=DEFAULT_ENCODING)

    @field_validator("delimiter", mode="before")
    @classmethod
    def _validate_delimiter(cls, value):
        if value is None:
            return DEFAULT_DELIMITER
        return validate_delimiter(value)

    @field_validator("input_encoding", "output_encoding", mode="before")
    @classmethod
    def _validate_encoding(cls, value):
        if value is None:
            return DEFAULT_ENCODING
        text = str(value).strip()
        try:
            codecs.lookup(text)
        except LookupError as exc:
            raise ValueError(f"unknown encoding {text!r}") from exc
        return text
