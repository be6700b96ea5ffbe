from __future__ import annotations

from typing import Optional


class VodiffError(Exception):
    pass


class NotAPatchError(VodiffError, ValueError):
    """Raised when text carries no SEARCH/REPLACE marker block at all."""

    def __init__(self, content: str) -> None:
        preview = content if len(content) <= 80 else content[:77] + "..."
        super().__init__(
            f"The patch is not correctly formatted. Could not parse {preview!r}"
        )
        self.content = content


class DiffToolError(VodiffError):
    """External diff or merge tool exited with an unexpected status."""

    def __init__(
        self,
        msg: str,
        *,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(msg)
        self.returncode = returncode
        self.stderr = stderr


class DiffToolMissingError(DiffToolError):
    """External tool binary could not be found or executed."""


class DiffGenerationError(VodiffError):
    """Diff generation kept failing after every recovery attempt."""

    def __init__(self, target_id: object, attempts: int) -> None:
        super().__init__(
            f"Diff generation for {target_id!r} failed after {attempts} attempts"
        )
        self.target_id = target_id
        self.attempts = attempts
