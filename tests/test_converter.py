"""
Tests for local/remote field translation (mdtask_sync/sync/converter.py)
and the content fingerprint.
"""

from datetime import date

import pytest

from mdtask_sync.core.models import RemoteDue, RemoteProject, RemoteTask, SidebandMetadata, Task
from mdtask_sync.sync.converter import (
    importance_to_priority,
    name_to_tag,
    priority_to_importance,
    project_tags,
    remote_to_task,
    task_to_remote,
)
from mdtask_sync.sync.fingerprint import task_fingerprint
from mdtask_sync.utils.sideband import decode_sideband, encode_sideband


WORK = RemoteProject(id="p-work", name="work")
INBOX = RemoteProject(id="inbox", name="Inbox", is_inbox_project=True)


class TestPriorityTable:

    @pytest.mark.parametrize("importance,priority", [
        (1, 4), (2, 3), (3, 2), (4, 1), (5, 1), (None, 1),
    ])
    def test_importance_to_priority(self, importance, priority):
        assert importance_to_priority(importance) == priority

    @pytest.mark.parametrize("priority,importance", [
        (4, 1), (3, 2), (2, 3), (1, None), (None, None),
    ])
    def test_priority_to_importance(self, priority, importance):
        assert priority_to_importance(priority) == importance


class TestTaskToRemote:

    def test_first_tag_is_project_rest_are_labels(self):
        task = Task(id="abc", description="Report", tags=["work", "urgent", "q1"])

        remote = task_to_remote(task, project_tags([WORK, INBOX]))

        assert remote.project_id == "p-work"
        assert remote.labels == ["urgent", "q1"]

    def test_unknown_project_is_omitted(self):
        task = Task(id="abc", description="Report", tags=["garden"])

        remote = task_to_remote(task, project_tags([WORK]))

        assert remote.project_id is None
        assert remote.labels == []

    def test_sideband_carries_local_fields(self):
        task = Task(
            id="abc",
            description="Report",
            deadline=date(2026, 1, 30),
            reminder=date(2026, 1, 28),
            importance=2,
            notes="slides",
        )

        remote = task_to_remote(task, {})
        _, meta = decode_sideband(remote.description)

        assert remote.content == "Report"
        assert remote.due_date == "2026-01-30"
        assert remote.priority == 3
        assert meta == SidebandMetadata(
            id="abc", deadline=date(2026, 1, 30), reminder=date(2026, 1, 28), importance=2, notes="slides"
        )

    def test_completion_is_not_sent(self):
        remote = task_to_remote(Task(id="abc", description="Done", completed=True), {})

        assert "is_completed" not in remote.to_payload()

    def test_existing_user_description_kept(self):
        existing = RemoteTask(content="Report", id="r1", description="Typed in the app")
        task = Task(id="abc", description="Report")

        remote = task_to_remote(task, {}, existing=existing)

        user_text, meta = decode_sideband(remote.description)
        assert user_text == "Typed in the app"
        assert meta.id == "abc"


class TestRemoteToTask:

    def test_project_and_labels_become_tags(self):
        remote = RemoteTask(content="Report", id="r1", project_id="p-work", labels=["urgent"])

        task = remote_to_task(remote, {"p-work": WORK})

        assert task.tags == ["work", "urgent"]

    def test_inbox_project_is_not_a_tag(self):
        remote = RemoteTask(content="Loose", id="r1", project_id="inbox")

        task = remote_to_task(remote, {"inbox": INBOX})

        assert task.tags == []

    def test_sideband_fields_restored(self):
        description = encode_sideband(None, SidebandMetadata(
            id="abc", deadline=date(2026, 1, 30), reminder=date(2026, 1, 28), importance=5, notes="slides"
        ))
        remote = RemoteTask(content="Report", id="r1", description=description, priority=1,
                            due=RemoteDue(date="2026-01-30"))

        task = remote_to_task(remote, {}, task_id="abc")

        assert task == Task(id="abc", description="Report", deadline=date(2026, 1, 30),
                            reminder=date(2026, 1, 28), importance=5, notes="slides")

    def test_remote_due_date_wins_over_sideband(self):
        description = encode_sideband(None, SidebandMetadata(id="abc", deadline=date(2026, 1, 30)))
        remote = RemoteTask(content="Moved", id="r1", description=description,
                            due=RemoteDue(date="2026-02-15"))

        assert remote_to_task(remote, {}).deadline == date(2026, 2, 15)

    def test_priority_used_without_sideband(self):
        remote = RemoteTask(content="Urgent", id="r1", priority=4)

        task = remote_to_task(remote, {})

        assert task.importance == 1
        assert len(task.id) == 8

    def test_project_name_sanitised(self):
        project = RemoteProject(id="p2", name="Home Stuff")

        task = remote_to_task(RemoteTask(content="x", id="r1", project_id="p2"), {"p2": project})

        assert task.tags == ["Home-Stuff"]
        assert name_to_tag("Home Stuff") == "Home-Stuff"

    def test_local_remote_local_round_trip(self):
        task = Task(id="abc", description="Report", deadline=date(2026, 1, 30), tags=["work", "urgent"],
                    reminder=date(2026, 1, 28), importance=2, notes="slides")

        remote = task_to_remote(task, project_tags([WORK]))
        remote.id = "r1"
        remote.due = RemoteDue(date=remote.due_date)

        assert remote_to_task(remote, {"p-work": WORK}, task_id="abc") == task


class TestFingerprint:

    def test_stable(self):
        task = Task(id="abc", description="Report", tags=["work"], deadline=date(2026, 1, 30))

        assert task_fingerprint(task) == task_fingerprint(Task(**vars(task)))

    def test_known_value_is_process_independent(self):
        first = task_fingerprint(Task(id="a", description="x"))

        assert first == task_fingerprint(Task(id="b", description="x"))
        assert len(first) == 64

    @pytest.mark.parametrize("field,value", [
        ("description", "changed"),
        ("deadline", date(2026, 2, 1)),
        ("tags", ["work", "extra"]),
        ("reminder", date(2026, 1, 1)),
        ("completed", True),
        ("notes", "new note"),
        ("importance", 3),
    ])
    def test_every_field_changes_hash(self, field, value):
        base = Task(id="abc", description="Report", tags=["work"], deadline=date(2026, 1, 30))
        changed = Task(**vars(base))
        setattr(changed, field, value)

        assert task_fingerprint(base) != task_fingerprint(changed)
