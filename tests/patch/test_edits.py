import json

from vodiff.patch import parse_xml_patches, patches_from_edit
from vodiff.patch.edits import FileEdit


def test_single_edit_payload():
    payload = json.dumps(
        {"file_path": "src/app.py", "old_string": "x = 1", "new_string": "x = 2"}
    )

    patches = parse_xml_patches(patches_from_edit(payload))

    assert [(p.search, p.replace) for p in patches] == [("x = 1", "x = 2")]


def test_multi_edit_payload_keeps_ids():
    payload = {
        "file_path": "src/app.py",
        "edits": [
            {
                "id": "6f1c2a9e-3b4d-4c5e-8f70-112233445566",
                "old_string": "a = 1",
                "new_string": "a = 2",
            },
            {
                "id": "0a9b8c7d-6e5f-4a3b-9c2d-665544332211",
                "old_string": "b = 1",
                "new_string": "b = 2",
                "replace_all": True,
            },
        ],
    }
    edit = FileEdit.model_validate(payload)

    patches = parse_xml_patches(patches_from_edit(payload))

    assert [p.external_id for p in patches] == [str(e.id) for e in edit.all_edits]
    assert [p.replace for p in patches] == ["a = 2", "b = 2"]


def test_payload_without_edits():
    assert FileEdit(file_path="f.py").all_edits == []
    assert patches_from_edit({"file_path": "f.py"}) == ""
