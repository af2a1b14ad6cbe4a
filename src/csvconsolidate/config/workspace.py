from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from csvconsolidate.config.options import (
    LOG_LEVEL_CHOICES,
    VISUAL_CHOICES,
    WORKSPACE_FILENAME,
)
from csvconsolidate.config.run import validate_delimiter
from csvconsolidate.utils.load import load_yaml


class SharedDefaults(BaseModel):
    log_level: Optional[str] = Field(default=None, description="DEFAULT LOG LEVEL")
    visuals: Optional[str] = Field(default=None, description="AUTO | TQDM | RICH | OFF")

    @field_validator("log_level", "visuals", mode="before")
    @classmethod
    def _normalize(cls, value: object):
        if value is None:
            return None
        if isinstance(value, str):
            text = value.strip()
            return text if text else None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        if value is None:
            return None
        name = str(value).strip().upper()
        if name not in LOG_LEVEL_CHOICES:
            raise ValueError(
                f"log_level must be one of {', '.join(LOG_LEVEL_CHOICES)}, got {value!r}"
            )
        return name

    @field_validator("visuals", mode="before")
    @classmethod
    def _normalize_visuals(cls, value):
        if value is None:
            return None
        # YAML reads a bare OFF as False
        if isinstance(value, bool):
            return "OFF" if value is False else "AUTO"
        name = str(value).strip().upper()
        if name.lower() not in VISUAL_CHOICES:
            raise ValueError(
                f"visuals must be one of {', '.join(c.upper() for c in VISUAL_CHOICES)}, got {value!r}"
            )
        return name


class RunDefaults(BaseModel):
    root: Optional[str] = None
    output: Optional[str] = None
    delimiter: Optional[str] = None
    input_encoding: Optional[str] = None
    output_encoding: Optional[str] = None

    @field_validator("delimiter", mode="before")
    @classmethod
    def _check_delimiter(cls, value):
        if value is None:
            return None
        return validate_delimiter(value)


class WorkspaceConfig(BaseModel):
    shared: SharedDefaults = Field(default_factory=SharedDefaults)
    defaults: RunDefaults = Field(default_factory=RunDefaults)


@dataclass
class WorkspaceContext:
    file_path: Path
    config: WorkspaceConfig

    @property
    def root(self) -> Path:
        return self.file_path.parent


def load_workspace_context(start_dir: Optional[Path] = None) -> Optional[WorkspaceContext]:
    """Search from start_dir upward for consolidate.yaml and return parsed config."""
    directory = (start_dir or Path.cwd()).resolve()
    for path in [directory, *directory.parents]:
        candidate = path / WORKSPACE_FILENAME
        if candidate.is_file():
            data = load_yaml(candidate)
            # Allow users to set sections to null to fall back to defaults
            for key in ("shared", "defaults"):
                if key in data and data[key] is None:
                    data.pop(key)
            cfg = WorkspaceConfig.model_validate(data)
            return WorkspaceContext(file_path=candidate, config=cfg)
    return None
