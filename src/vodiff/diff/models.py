from __future__ import annotations

from enum import Enum
from typing import List, NamedTuple, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


class CharRange(NamedTuple):
    start: int
    end: int


class LineRange(NamedTuple):
    """Half-open [start, end) range of indices into a LineChange list."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return max(0, self.end - self.start)

    def clamped(self, limit: "LineRange") -> "LineRange":
        lower = max(self.start, limit.start)
        upper = min(self.end, limit.end)
        return LineRange(min(lower, upper), upper)

    @property
    def key(self) -> str:
        return f"{self.start}-{self.end}"


class LineChange(BaseModel):
    """
    One line of a two-version view of a file.

    character_range indexes the new text for added and unchanged lines and
    the old text for removed lines. content keeps its line terminator.
    """

    model_config = ConfigDict(frozen=True)

    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None
    character_range: CharRange
    content: str
    kind: ChangeKind

    @model_validator(mode="after")
    def _check_line_numbers(self) -> "LineChange":
        if self.kind == ChangeKind.ADDED and self.old_line_number is not None:
            raise ValueError("Added lines have no old line number")
        if self.kind == ChangeKind.REMOVED and self.new_line_number is not None:
            raise ValueError("Removed lines have no new line number")
        if self.kind == ChangeKind.UNCHANGED and (
            self.old_line_number is None or self.new_line_number is None
        ):
            raise ValueError("Unchanged lines need both line numbers")
        return self

    @property
    def is_change(self) -> bool:
        return self.kind != ChangeKind.UNCHANGED

    @property
    def text(self) -> str:
        """Line content without its terminator."""
        return self.content.rstrip("\r\n")


class DiffGroup(BaseModel):
    """A reviewable run of line changes with bounded surrounding context."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    lines: List[LineChange] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any(line.is_change for line in self.lines)

    @property
    def first_line_number(self) -> Optional[int]:
        for line in self.lines:
            if line.new_line_number is not None:
                return line.new_line_number
        return None

    @property
    def formatted_text(self) -> str:
        """Added and unchanged lines joined into the group's resulting text."""
        return "\n".join(
            line.text for line in self.lines if line.kind != ChangeKind.REMOVED
        )
