# tests/models/test_note.py
import pytest

from flowdesk.models import Note, normalize_tags


@pytest.mark.parametrize("raw, expected", [
    ("a, b ,c", ["a", "b", "c"]),
    (" a ,, ,b,", ["a", "b"]),
    ("", []),
    (None, []),
    (["x", " y ", ""], ["x", "y"]),
    ("dup, dup , other", ["dup", "other"]),
])
def test_normalize_tags(raw, expected):
    assert normalize_tags(raw) == expected


def test_normalize_tags_is_idempotent():
    once = normalize_tags("a, b ,c")
    assert normalize_tags(once) == once
    assert normalize_tags(",".join(once)) == once


def test_note_tags_from_text_and_back():
    note = Note(title="n", tags="a, b ,c")
    assert set(note.tags) == {"a", "b", "c"}

    record = note.to_record()
    assert record["tags"] == "a,b,c"

    again = Note.from_record(record)
    assert again.tags == note.tags


def test_note_python_dump_keeps_list():
    note = Note(title="n", tags=["a"])
    assert note.model_dump()["tags"] == ["a"]


def test_note_defaults():
    note = Note(title="n")
    assert note.content == ""
    assert note.tags == []
    assert note.workspace_id is None
