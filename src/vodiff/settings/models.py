from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"
    disabled = "disabled"


class LoggingSettings(BaseModel):
    # Level for the root and `vodiff` loggers unless overridden below.
    default_level: LogLevel = LogLevel.info
    # Mapping of logger name -> level override (e.g., {"asyncio": "debug"})
    enabled_loggers: Dict[str, LogLevel] = Field(default_factory=dict)


class ProcessEnvSettings(BaseModel):
    inherit_parent: bool = True
    allowlist: Optional[List[str]] = None
    denylist: Optional[List[str]] = None
    defaults: Dict[str, str] = Field(default_factory=dict)


class ExecutorSettings(BaseModel):
    # "git" shells out to git for diff and merge; "builtin" stays in-process.
    backend: Literal["git", "builtin"] = "git"
    git_binary: str = "git"
    # Unchanged lines of context around each hunk of the raw diff.
    context_lines: int = Field(default=1, ge=0)
    # Marker for empty lines while the external tool runs.
    empty_line_token: str = "<l>"
    tmp_dir: Optional[Path] = None
    env: ProcessEnvSettings = Field(default_factory=ProcessEnvSettings)

    @field_validator("empty_line_token")
    @classmethod
    def _token_not_empty(cls, v: str) -> str:
        if not v or "\n" in v:
            raise ValueError("empty_line_token must be a non-empty single-line string")
        return v


class SessionSettings(BaseModel):
    max_retries: int = Field(default=5, ge=0)
    # Wait before retry N is retry_delay_s * N.
    retry_delay_s: float = Field(default=0.1, ge=0)
    min_separation: int = Field(default=3, ge=0)


class Settings(BaseModel):
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: Optional[LoggingSettings] = Field(default=None)
