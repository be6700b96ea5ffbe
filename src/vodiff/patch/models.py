from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

# Trimmed search text shorter than this is treated as ambiguous.
SHORT_PATTERN_THRESHOLD = 5


@dataclass(frozen=True)
class Patch:
    search: str
    replace: str
    external_id: Optional[str] = None
    note: Optional[str] = None
    id: UUID = field(default_factory=uuid4)

    @property
    def key(self) -> str:
        """Stable identity: the external id when present, else the local id."""
        return self.external_id or str(self.id)

    @property
    def has_short_pattern(self) -> bool:
        return len(self.search.strip()) < SHORT_PATTERN_THRESHOLD

    def inverse(self) -> "Patch":
        return Patch(
            search=self.replace,
            replace=self.search,
            external_id=self.external_id,
            note=f"Undo: {self.note}" if self.note is not None else None,
        )


class DiagnosticKind(str, Enum):
    NOT_FOUND = "not_found"
    NOT_UNIQUE = "not_unique"
    TRIMMED_MATCH = "trimmed_match"
    NO_CHANGE = "no_change"


@dataclass
class PatchDiagnostic:
    kind: DiagnosticKind
    msg: str
    patch_id: str
    note: Optional[str] = None
    occurrences: Optional[int] = None

    def describe(self) -> str:
        label = self.note or self.patch_id
        return f"{label}: {self.msg}"
