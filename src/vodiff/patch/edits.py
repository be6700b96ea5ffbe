from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from .xml import build_xml_patch


class Edit(BaseModel):
    old_string: str
    new_string: str
    replace_all: bool = False
    id: UUID = Field(default_factory=uuid4)

    def to_xml(self) -> str:
        return build_xml_patch(self.old_string, self.new_string, external_id=str(self.id))


class FileEdit(BaseModel):
    """Payload of an edit tool call: a single edit or a list of edits for one file."""

    file_path: str
    edits: Optional[List[Edit]] = None
    old_string: Optional[str] = None
    new_string: Optional[str] = None
    replace_all: Optional[bool] = None

    @property
    def all_edits(self) -> List[Edit]:
        if self.edits is not None:
            return list(self.edits)
        if self.old_string is not None and self.new_string is not None:
            return [
                Edit(
                    old_string=self.old_string,
                    new_string=self.new_string,
                    replace_all=bool(self.replace_all),
                )
            ]
        return []

    def to_xml(self) -> str:
        return "\n".join(e.to_xml() for e in self.all_edits)


def patches_from_edit(payload: Union[str, bytes, Dict[str, Any]]) -> str:
    """Convert an edit tool payload (JSON text or decoded dict) into XML patch text."""
    if isinstance(payload, dict):
        edit = FileEdit.model_validate(payload)
    else:
        edit = FileEdit.model_validate_json(payload)
    return edit.to_xml()
