from .base import (
    EnvPolicy,
    ProcessResult,
    SpawnOptions,
    get_backend,
    register_backend,
    run_process,
)
from .local import LocalSubprocessBackend

register_backend("local", lambda: LocalSubprocessBackend())

__all__ = [
    "EnvPolicy",
    "LocalSubprocessBackend",
    "ProcessResult",
    "SpawnOptions",
    "get_backend",
    "register_backend",
    "run_process",
]
