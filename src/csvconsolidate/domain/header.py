from __future__ import annotations

from typing import Sequence, Tuple

# U+FEFF as decoded from UTF-8, and the same three bytes (EF BB BF) when a
# single-byte codec such as latin-1 decoded them.
BOM_PREFIXES = ("\ufeff", "\xef\xbb\xbf")

CanonicalHeader = Tuple[str, ...]


def strip_bom(value: str) -> str:
    for prefix in BOM_PREFIXES:
        if value.startswith(prefix):
            return value[len(prefix):]
    return value


def normalize_header(raw: Sequence[str]) -> CanonicalHeader:
    """Return the header as an immutable tuple, BOM removed from the first cell.

    Case and whitespace are preserved. An empty header stays empty.
    """
    fields = tuple(raw)
    if not fields:
        return fields
    return (strip_bom(fields[0]), *fields[1:])
