from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from csvconsolidate.config.options import DEFAULT_LOG_LEVEL
from csvconsolidate.config.run import ConsolidateConfig
from csvconsolidate.config.workspace import WorkspaceContext


def cascade(*values, fallback=None):
    """Return the first non-None value from a list, or fallback."""
    for value in values:
        if value is not None:
            return value
    return fallback


def _normalize_lower(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text.lower() if text else None


def _normalize_upper(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int):
        return logging.getLevelName(value).upper()
    text = str(value).strip()
    return text.upper() if text else None


@dataclass(frozen=True)
class LogLevelDecision:
    name: str
    value: int


def resolve_log_level(
    *levels: Any,
    fallback: str = DEFAULT_LOG_LEVEL,
) -> LogLevelDecision:
    name = None
    for level in levels:
        normalized = _normalize_upper(level)
        if normalized:
            name = normalized
            break
    if not name:
        name = _normalize_upper(fallback) or DEFAULT_LOG_LEVEL
    value = logging._nameToLevel.get(name, logging.INFO)
    return LogLevelDecision(name=name, value=value)


def resolve_visuals(
    *,
    cli_visuals: str | None,
    workspace_visuals: str | None,
    default: str = "auto",
) -> str:
    return cascade(
        _normalize_lower(cli_visuals),
        _normalize_lower(workspace_visuals),
        default,
    ) or default


def _anchor(value: Optional[str], base: Optional[Path]) -> Optional[Path]:
    if value is None:
        return None
    candidate = Path(value)
    if candidate.is_absolute() or base is None:
        return candidate
    return (base / candidate).resolve()


def resolve_run_config(
    *,
    cli_root: Optional[str] = None,
    cli_output: Optional[str] = None,
    cli_delimiter: Optional[str] = None,
    cli_input_encoding: Optional[str] = None,
    cli_output_encoding: Optional[str] = None,
    workspace: WorkspaceContext | None = None,
) -> ConsolidateConfig:
    """Merge CLI values over workspace defaults over built-in defaults.

    Workspace-relative paths are anchored at the directory holding the
    workspace file; CLI paths stay relative to the working directory.
    """
    defaults = workspace.config.defaults if workspace else None
    base = workspace.root if workspace else None
    values: dict[str, Any] = {
        "root": cascade(
            Path(cli_root) if cli_root is not None else None,
            _anchor(defaults.root if defaults else None, base),
        ),
        "output": cascade(
            Path(cli_output) if cli_output is not None else None,
            _anchor(defaults.output if defaults else None, base),
        ),
        "delimiter": cascade(cli_delimiter, defaults.delimiter if defaults else None),
        "input_encoding": cascade(
            cli_input_encoding, defaults.input_encoding if defaults else None
        ),
        "output_encoding": cascade(
            cli_output_encoding, defaults.output_encoding if defaults else None
        ),
    }
    return ConsolidateConfig.model_validate(
        {key: value for key, value in values.items() if value is not None}
    )
