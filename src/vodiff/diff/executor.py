from __future__ import annotations

import difflib
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from vodiff.errors import DiffToolError, DiffToolMissingError
from vodiff.logger import logger
from vodiff.proc import SpawnOptions, get_backend, run_process
from vodiff.proc.base import EnvPolicy, ProcessBackend, ProcessResult
from .unified import split_lines

DEFAULT_CONTEXT_LINES = 1
DEFAULT_EMPTY_LINE_TOKEN = "<l>"


@runtime_checkable
class DiffExecutor(Protocol):
    async def unified_diff(
        self, old: str, new: str, file_extension: Optional[str] = None
    ) -> str: ...


@runtime_checkable
class ThreeWayMerge(Protocol):
    async def merge(self, base: str, ours: str, theirs: str) -> str: ...


def escape_empty_lines(text: str, token: str = DEFAULT_EMPTY_LINE_TOKEN) -> str:
    """
    Mark every empty line with token so the diff tool cannot collapse it.
    Lines that already start with the token get it doubled.
    """
    out: List[str] = []
    for line in text.split("\n"):
        if line.startswith(token):
            out.append(token + line)
        elif line == "":
            out.append(token)
        else:
            out.append(line)
    return "\n".join(out)


def unescape_diff_lines(diff_text: str, token: str = DEFAULT_EMPTY_LINE_TOKEN) -> str:
    """Drop one token from the start of each diff body line."""
    out: List[str] = []
    for line in diff_text.split("\n"):
        tag, body = line[:1], line[1:]
        if tag in (" ", "+", "-") and body.startswith(token):
            line = tag + body[len(token) :]
        out.append(line)
    return "\n".join(out)


def strip_file_header(diff_text: str) -> str:
    """Drop the lines before the first hunk (diff/index/---/+++)."""
    lines = diff_text.split("\n")
    for idx, line in enumerate(lines):
        if line.startswith("@@"):
            return "\n".join(lines[idx:])
    return ""


def _suffix(file_extension: Optional[str]) -> str:
    if not file_extension:
        return ""
    return file_extension if file_extension.startswith(".") else "." + file_extension


class _GitTool:
    def __init__(
        self,
        *,
        git_binary: str = "git",
        tmp_dir: Optional[Path] = None,
        backend: Optional[ProcessBackend] = None,
        env_policy: Optional[EnvPolicy] = None,
    ) -> None:
        self.git_binary = git_binary
        self.tmp_dir = tmp_dir
        self._backend = backend or get_backend("local")
        if env_policy is not None:
            self._backend.env_policy = env_policy

    async def _run(self, argv: Sequence[str], cwd: Path, name: str) -> ProcessResult:
        opts = SpawnOptions(argv=[self.git_binary, *argv], name=name, cwd=cwd)
        try:
            return await run_process(self._backend, opts)
        except (FileNotFoundError, PermissionError) as e:
            raise DiffToolMissingError(
                f"Cannot execute {self.git_binary!r}: {e}"
            ) from e

    def _workdir(self) -> tempfile.TemporaryDirectory:
        return tempfile.TemporaryDirectory(
            prefix="vodiff-", dir=str(self.tmp_dir) if self.tmp_dir else None
        )


class GitDiffExecutor(_GitTool):
    """Runs `git diff --no-index` over two temporary files."""

    def __init__(
        self,
        *,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        empty_line_token: str = DEFAULT_EMPTY_LINE_TOKEN,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.context_lines = context_lines
        self.empty_line_token = empty_line_token

    async def unified_diff(
        self, old: str, new: str, file_extension: Optional[str] = None
    ) -> str:
        suffix = _suffix(file_extension)
        with self._workdir() as tmp:
            root = Path(tmp)
            old_path = root / f"old{suffix}"
            new_path = root / f"new{suffix}"
            old_path.write_text(escape_empty_lines(old, self.empty_line_token), encoding="utf-8")
            new_path.write_text(escape_empty_lines(new, self.empty_line_token), encoding="utf-8")

            result = await self._run(
                [
                    "diff",
                    "--no-index",
                    "--no-color",
                    f"-U{self.context_lines}",
                    old_path.name,
                    new_path.name,
                ],
                cwd=root,
                name="git-diff",
            )

        # 0: identical, 1: differences found
        if result.returncode not in (0, 1):
            logger.warning(
                "git diff failed", returncode=result.returncode, stderr=result.stderr
            )
            raise DiffToolError(
                f"git diff exited with status {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return unescape_diff_lines(strip_file_header(result.stdout), self.empty_line_token)


class GitMergeExecutor(_GitTool):
    """Runs `git merge-file -p` with current/baseline/target labels."""

    async def merge(self, base: str, ours: str, theirs: str) -> str:
        with self._workdir() as tmp:
            root = Path(tmp)
            for name, content in (("current", ours), ("base", base), ("target", theirs)):
                (root / name).write_text(content, encoding="utf-8")

            result = await self._run(
                [
                    "merge-file",
                    "-p",
                    "-L",
                    "current",
                    "-L",
                    "baseline",
                    "-L",
                    "target",
                    "current",
                    "base",
                    "target",
                ],
                cwd=root,
                name="git-merge-file",
            )

        # A positive status is the number of conflicts (capped at 127).
        if not 0 <= result.returncode <= 127:
            raise DiffToolError(
                f"git merge-file exited with status {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        if result.returncode:
            logger.info("Merge produced conflicts", conflicts=result.returncode)
        return result.stdout


class BuiltinDiffExecutor:
    """In-process DiffExecutor built on difflib."""

    def __init__(self, *, context_lines: int = DEFAULT_CONTEXT_LINES) -> None:
        self.context_lines = context_lines

    async def unified_diff(
        self, old: str, new: str, file_extension: Optional[str] = None
    ) -> str:
        a = [line.rstrip("\n") for line in split_lines(old)]
        b = [line.rstrip("\n") for line in split_lines(new)]
        body = difflib.unified_diff(a, b, n=self.context_lines, lineterm="")
        return strip_file_header("\n".join(body))
