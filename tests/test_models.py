"""
Tests for the Document, Task, Category and Priority models.

Covers validation, display ordering, statistics and the persisted JSON
format (including files written by older versions).
"""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tests.helpers.factories import BASE_TIME, at, make_category, make_document, make_task
from todobi.models import (
    DEFAULT_VERSION,
    Category,
    Document,
    DocumentDecodeError,
    Priority,
    Task,
)


class TestPriority:
    """Tests for the Priority enum."""

    def test_labels(self):
        assert [p.label for p in Priority] == ["P0", "P1", "P2", "P3"]

    def test_colors(self):
        assert Priority.P0.color == "#d73a4a"
        assert Priority.P3.color == "#4caf50"

    @pytest.mark.parametrize("raw,expected", [
        ("0", Priority.P0),
        ("p2", Priority.P2),
        (" P3 ", Priority.P3),
        (1, Priority.P1),
    ])
    def test_parse(self, raw, expected):
        assert Priority.parse(raw) == expected

    def test_parse_invalid_raises(self):
        with pytest.raises(ValueError):
            Priority.parse("7")

    def test_parse_invalid_with_default(self):
        assert Priority.parse("urgent", default=Priority.P1) == Priority.P1


class TestTask:
    """Tests for the Task model."""

    def test_defaults(self):
        task = Task(id="a", content="Buy milk")
        assert task.category_id == ""
        assert task.priority == Priority.P1
        assert task.done is False
        assert task.completed_at is None
        assert task.notes == ""
        assert task.created_at.tzinfo is not None

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Task(id="", content="x")

    def test_mark_completed_sets_timestamp(self):
        task = make_task()
        task.mark_completed(now=at(minutes=5))
        assert task.done is True
        assert task.completed_at == at(minutes=5)

    def test_mark_incomplete_clears_timestamp(self):
        task = make_task(done=True, completed_at=at(minutes=5))
        task.mark_incomplete()
        assert task.done is False
        assert task.completed_at is None

    def test_toggle_round_trip(self):
        task = make_task()
        assert task.toggle(now=at(minutes=1)) is True
        assert task.toggle() is False
        assert task.completed_at is None

    def test_age_description(self):
        task = make_task(created_at=BASE_TIME)
        assert task.age_description(now=at(minutes=30)) == "Created today"
        assert task.age_description(now=at(days=1)) == "1 day old"
        assert task.age_description(now=at(days=4)) == "4 days old"

    def test_serialization_omits_unset_fields(self):
        data = make_task().model_dump(mode="json")
        assert "completed_at" not in data
        assert "notes" not in data
        assert data["priority"] == 1
        assert data["created_at"] == "2025-11-02T14:00:00Z"

    def test_serialization_keeps_set_fields(self):
        task = make_task(done=True, completed_at=at(minutes=1), notes="call first")
        data = task.model_dump(mode="json")
        assert data["completed_at"] == "2025-11-02T14:01:00Z"
        assert data["notes"] == "call first"


class TestDocumentValidation:
    """Tests for document-level validation."""

    def test_duplicate_task_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate task id"):
            make_document(tasks=[make_task("1"), make_task("1")])

    def test_duplicate_category_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate category id"):
            make_document(categories=[make_category("work"), make_category("work")])

    def test_dangling_category_reference_allowed(self):
        document = make_document(tasks=[make_task("1", category_id="gone")])
        assert document.category_name("gone") == "Unknown"


class TestDocumentQueries:
    """Tests for lookups, ordering and statistics."""

    @pytest.fixture
    def document(self):
        return make_document(
            categories=[make_category("work", "Work"), make_category("home", "Home")],
            tasks=[
                make_task("w1", category_id="work", priority=Priority.P2),
                make_task("w2", category_id="work", priority=Priority.P0),
                make_task("h1", category_id="home", priority=Priority.P3),
                make_task("d1", category_id="work", done=True, completed_at=at(minutes=1)),
                make_task("d2", category_id="work", done=True, completed_at=at(minutes=9)),
                make_task("d3", category_id="home", done=True, completed_at=at(minutes=5)),
            ],
        )

    def test_get_task_and_category(self, document):
        assert document.get_task("w1").id == "w1"
        assert document.get_task("missing") is None
        assert document.get_category("home").name == "Home"
        assert document.get_category("missing") is None

    def test_active_tasks_ordered_by_category_name_then_priority(self, document):
        assert [t.id for t in document.active_tasks()] == ["h1", "w2", "w1"]

    def test_completed_tasks_ordered_by_category_then_most_recent(self, document):
        assert [t.id for t in document.completed_tasks()] == ["d3", "d2", "d1"]

    def test_counts_and_progress(self, document):
        assert document.pending_count == 3
        assert document.completed_count == 3
        assert document.progress == 50

    def test_progress_of_empty_document(self):
        assert make_document(tasks=[]).progress == 0

    def test_progress_uses_integer_division(self):
        document = make_document(tasks=[
            make_task("1", done=True, completed_at=at()),
            make_task("2"),
            make_task("3"),
        ])
        assert document.progress == 33

    def test_tasks_in_category(self, document):
        assert {t.id for t in document.tasks_in_category("home")} == {"h1", "d3"}


class TestDocumentIdentity:
    """Tests for content equality, fingerprints and cloning."""

    def test_content_equals_ignores_last_update(self):
        a = make_document(tasks=[make_task("1")], last_update=at(minutes=1))
        b = make_document(tasks=[make_task("1")], last_update=at(minutes=2))
        assert a.content_equals(b)
        assert a.fingerprint() != b.fingerprint()

    def test_content_equals_detects_task_change(self):
        a = make_document(tasks=[make_task("1", content="a")])
        b = make_document(tasks=[make_task("1", content="b")])
        assert not a.content_equals(b)

    def test_fingerprint_is_stable(self):
        a = make_document(tasks=[make_task("1")])
        b = make_document(tasks=[make_task("1")])
        assert a.fingerprint() == b.fingerprint()

    def test_clone_is_independent(self):
        original = make_document(tasks=[make_task("1")])
        copy = original.clone()
        copy.tasks[0].content = "changed"
        assert original.tasks[0].content == "Task 1"


class TestDocumentSerialization:
    """Tests for the persisted JSON format."""

    def test_to_json_bytes_is_indented_utf8(self):
        document = make_document(tasks=[make_task("1", content="Café ☕")])
        data = document.to_json_bytes()
        assert b'\n  "categories"' in data
        assert "Café ☕".encode("utf-8") in data

    def test_setup_flag_omitted_when_false(self):
        raw = json.loads(make_document(github_setup_complete=False).to_json_bytes())
        assert "github_setup_complete" not in raw

    def test_round_trip_preserves_content(self):
        document = make_document(
            categories=[make_category("work"), make_category("home")],
            tasks=[
                make_task("1", notes="n"),
                make_task("2", done=True, completed_at=at(minutes=3), priority=Priority.P0),
            ],
        )
        decoded = Document.from_json_bytes(document.to_json_bytes())
        assert decoded.content_equals(document)
        assert decoded.last_update == document.last_update

    def test_decodes_go_era_file(self):
        data = json.dumps({
            "categories": [{"id": "work", "name": "Work"}],
            "tasks": [{
                "id": "1",
                "content": "Old task",
                "category_id": "work",
                "priority": 2,
                "done": False,
                "created_at": "2025-11-02T14:03:11.123456789-07:00",
                "completed_at": "0001-01-01T00:00:00Z",
            }],
            "last_update": "2025-11-02T14:05:00.5Z",
            "version": "1.2.0",
        }).encode("utf-8")

        document = Document.from_json_bytes(data)

        task = document.tasks[0]
        assert task.completed_at is None
        assert task.notes == ""
        assert task.created_at.microsecond == 123456
        assert document.version == "1.2.0"
        assert document.github_setup_complete is False
        assert document.last_update == datetime(2025, 11, 2, 14, 5, 0, 500000, tzinfo=timezone.utc)

    def test_null_collections_and_missing_version(self):
        data = b'{"categories": null, "tasks": null, "last_update": "2025-11-02T14:00:00Z"}'
        document = Document.from_json_bytes(data)
        assert document.categories == []
        assert document.tasks == []
        assert document.version == DEFAULT_VERSION

    def test_unknown_fields_ignored(self):
        data = b'{"categories": [], "tasks": [], "last_update": "2025-11-02T14:00:00Z", "theme": "dark"}'
        assert Document.from_json_bytes(data).tasks == []

    @pytest.mark.parametrize("data", [
        b"not json",
        b"[1, 2, 3]",
        b'{"tasks": [{"id": ""}]}',
        b"\xff\xfe",
    ])
    def test_invalid_data_raises_decode_error(self, data):
        with pytest.raises(DocumentDecodeError):
            Document.from_json_bytes(data)

    def test_category_name_mutable(self):
        category = Category(id="work", name="Work")
        category.name = "Job"
        assert category.name == "Job"
