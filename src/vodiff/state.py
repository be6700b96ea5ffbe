from __future__ import annotations

import posixpath
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vodiff.diff.models import DiffGroup, LineChange, LineRange
from vodiff.patch.models import Patch


class DiffStatus(str, Enum):
    EMPTY = "empty"
    DIFFING = "diffing"
    RECOVERING = "recovering"
    READY = "ready"


class DiffResult(BaseModel):
    """
    Inputs and outputs of one diff request for a file.

    raw_diff is the patch text. storage is the working copy streamed
    patches accumulate on; it is filled from original on first use.
    """

    file_path: str = ""
    file_name: str = ""
    original: str = ""
    updated: str = ""
    raw_diff: str = ""
    storage: str = ""
    file_extension: Optional[str] = None

    @model_validator(mode="after")
    def _derive_names(self) -> "DiffResult":
        path = self.file_path.replace("\\", "/")
        if not self.file_name and path:
            self.file_name = posixpath.basename(path)
        if self.file_extension is None:
            _, ext = posixpath.splitext(self.file_name)
            self.file_extension = ext.lstrip(".") or None
        return self


class DiffState(BaseModel):
    """Snapshot of a processed diff. Never mutated; updates produce a copy."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    result: DiffResult = Field(default_factory=DiffResult)
    parsed_patches: List[Patch] = Field(default_factory=list)
    groups: List[DiffGroup] = Field(default_factory=list)
    patch_id_to_group_id: Dict[str, UUID] = Field(default_factory=dict)
    group_id_to_patch_id: Dict[UUID, str] = Field(default_factory=dict)
    applied_group_ids: FrozenSet[UUID] = Field(default_factory=frozenset)
    # Whole-file view of original vs updated
    changes: List[LineChange] = Field(default_factory=list)
    sections: List[LineRange] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "DiffState":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.groups and not self.changes

    @property
    def all_changes_applied(self) -> bool:
        if not self.groups:
            return False
        return all(g.id in self.applied_group_ids for g in self.groups)

    def group_for_patch(self, patch_key: str) -> Optional[DiffGroup]:
        gid = self.patch_id_to_group_id.get(patch_key)
        if gid is None:
            return None
        return self.get_group(gid)

    def patch_for_group(self, group_id: UUID) -> Optional[Patch]:
        key = self.group_id_to_patch_id.get(group_id)
        if key is None:
            return None
        for patch in self.parsed_patches:
            if patch.key == key:
                return patch
        return None

    def get_group(self, group_id: UUID) -> Optional[DiffGroup]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def with_applied(self, group_id: UUID) -> "DiffState":
        return self.model_copy(
            update={"applied_group_ids": self.applied_group_ids | {group_id}}
        )
