from .models import (
    ExecutorSettings,
    LoggingSettings,
    LogLevel,
    ProcessEnvSettings,
    SessionSettings,
    Settings,
)
from .loader import load_settings
from .build import build_executor, build_merge

__all__ = [
    "ExecutorSettings",
    "LogLevel",
    "LoggingSettings",
    "ProcessEnvSettings",
    "SessionSettings",
    "Settings",
    "build_executor",
    "build_merge",
    "load_settings",
]
