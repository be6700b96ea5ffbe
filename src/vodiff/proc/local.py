from __future__ import annotations

import asyncio
import os
import signal
from typing import Dict, Mapping, Optional

from .base import EnvPolicy, ProcessBackend, ProcessHandle, SpawnOptions


def _build_env(policy: EnvPolicy, overlay: Optional[Mapping[str, str]]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    if policy.inherit_parent:
        allow = set(policy.allowlist) if policy.allowlist is not None else None
        deny = set(policy.denylist or ())
        env = {
            k: v
            for k, v in os.environ.items()
            if (allow is None or k in allow) and k not in deny
        }
    env.update(policy.defaults)
    env.update(overlay or {})
    return env


class LocalProcessHandle(ProcessHandle):
    """Child started with asyncio.create_subprocess_exec, all pipes attached."""

    def __init__(
        self,
        proc: asyncio.subprocess.Process,
        name: Optional[str],
        *,
        own_group: bool,
    ) -> None:
        self._proc = proc
        self.name = name
        self._own_group = own_group

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    def alive(self) -> bool:
        return self._proc.returncode is None

    async def communicate(self, data: str | bytes | None = None) -> tuple[str, str]:
        payload = data.encode("utf-8") if isinstance(data, str) else data
        out, err = await self._proc.communicate(payload)
        return (
            (out or b"").decode("utf-8", errors="replace"),
            (err or b"").decode("utf-8", errors="replace"),
        )

    async def kill(self) -> None:
        if self.alive():
            try:
                if self._own_group:
                    # Reaches helpers git may have forked as well.
                    os.killpg(self._proc.pid, signal.SIGKILL)
                else:
                    self._proc.kill()
            except ProcessLookupError:
                pass
        # Reap so the pipe transports get closed.
        await self._proc.wait()

    async def wait(self) -> int:
        return await self._proc.wait()


class LocalSubprocessBackend(ProcessBackend):
    def __init__(self, env_policy: Optional[EnvPolicy] = None) -> None:
        self.env_policy: EnvPolicy = env_policy or EnvPolicy()

    async def spawn(self, opts: SpawnOptions) -> ProcessHandle:
        if not opts.argv:
            raise ValueError("Empty argv")
        own_group = opts.use_process_group and os.name == "posix"

        # FileNotFoundError / PermissionError propagate to the caller.
        proc = await asyncio.create_subprocess_exec(
            *opts.argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(opts.cwd) if opts.cwd is not None else None,
            env=_build_env(self.env_policy, opts.env_overlay),
            start_new_session=own_group,
        )
        return LocalProcessHandle(proc, opts.name, own_group=own_group)
