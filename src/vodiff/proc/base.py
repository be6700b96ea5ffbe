from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, List, Protocol, runtime_checkable, Callable


@dataclass
class EnvPolicy:
    inherit_parent: bool = True
    allowlist: Optional[list[str]] = None
    denylist: Optional[list[str]] = None
    defaults: Dict[str, str] = field(default_factory=dict)


@dataclass
class SpawnOptions:
    # Program and arguments, executed directly without a shell.
    argv: List[str]
    name: Optional[str] = None
    cwd: Optional[Path] = None
    env_overlay: Optional[Dict[str, str]] = None
    # Place the child in its own process group so kill() reaches the tree.
    use_process_group: bool = True


@dataclass
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str


@runtime_checkable
class ProcessHandle(Protocol):
    name: Optional[str]

    @property
    def pid(self) -> Optional[int]: ...
    @property
    def returncode(self) -> Optional[int]: ...
    def alive(self) -> bool: ...

    async def communicate(self, data: str | bytes | None = None) -> tuple[str, str]: ...
    async def kill(self) -> None: ...
    async def wait(self) -> int: ...


class ProcessBackend(Protocol):
    env_policy: EnvPolicy

    async def spawn(self, opts: SpawnOptions) -> ProcessHandle: ...


# Backend registry
_BACKENDS: dict[str, Callable[[], ProcessBackend]] = {}


def register_backend(name: str, factory: Callable[[], ProcessBackend]) -> None:
    _BACKENDS[name] = factory


def get_backend(name: str) -> ProcessBackend:
    if name not in _BACKENDS:
        raise ValueError(f"Unknown process backend: {name!r}")
    return _BACKENDS[name]()


async def run_process(
    backend: ProcessBackend, opts: SpawnOptions, *, stdin: str | bytes | None = None
) -> ProcessResult:
    """Spawn, collect output and wait. A cancelled caller kills the child."""
    handle = await backend.spawn(opts)
    try:
        stdout, stderr = await handle.communicate(stdin)
    except BaseException:
        if handle.alive():
            await handle.kill()
        raise
    rc = handle.returncode
    return ProcessResult(returncode=rc if rc is not None else -1, stdout=stdout, stderr=stderr)
