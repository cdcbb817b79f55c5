"""
test_project_store.py - Store backends: ledger ordering, lookups, JSON persistence.

Usage:
    pytest test_project_store.py
"""

from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import project_store
from errors import DuplicateRecordError, RecordNotFoundError
from models import (
    DocumentMainCategory,
    Project,
    ProjectDocument,
    Task,
    TaskStatus,
    Transaction,
)
from project_store import InMemoryProjectStore, JsonProjectStore, create_store


def make_project(project_id: str = "proj_1", owner_id: str = "user_1", created_at: str = "2024-01-01T00:00:00+00:00") -> Project:
    return Project(
        id=project_id,
        owner_id=owner_id,
        name="Main Street Remodel",
        client="Acme Holdings",
        budget=250_000_000,
        deadline="2024-12-31",
        created_at=created_at,
        updated_at=created_at,
    )


def make_task(task_id: str = "task_1", project_id: str = "proj_1") -> Task:
    return Task(
        id=task_id,
        project_id=project_id,
        name="Electrical Work",
        category="Electrical",
        contract_value=7_500_000,
    )


def make_txn(txn_id: str, task_id: str | None = "task_1", project_id: str = "proj_1") -> Transaction:
    return Transaction(
        id=txn_id,
        project_id=project_id,
        date="2024-02-01",
        amount=-100_000,
        reference=txn_id,
        linked_task_id=task_id,
    )


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryProjectStore()
    return JsonProjectStore(str(tmp_path / "store.json"))


def test_project_roundtrip_and_owner_filter(store):
    store.add_project(make_project("proj_old", "user_1", "2024-01-01T00:00:00+00:00"))
    store.add_project(make_project("proj_new", "user_1", "2024-03-01T00:00:00+00:00"))
    store.add_project(make_project("proj_other", "user_2"))

    assert store.get_project("proj_old").name == "Main Street Remodel"
    assert [project.id for project in store.list_projects("user_1")] == ["proj_new", "proj_old"]
    assert len(store.list_projects()) == 3


def test_missing_records_raise(store):
    with pytest.raises(RecordNotFoundError):
        store.get_project("nope")
    with pytest.raises(RecordNotFoundError):
        store.get_task("nope")
    with pytest.raises(RecordNotFoundError):
        store.add_task(make_task(project_id="nope"))
    with pytest.raises(RecordNotFoundError):
        store.update_task(make_task("ghost"))


def test_ledger_is_append_only_and_ordered(store):
    store.add_project(make_project())
    store.add_task(make_task())
    for txn_id in ("a", "b", "c"):
        store.append_transaction(make_txn(txn_id))
    store.append_transaction(make_txn("d", task_id=None))

    assert [entry.id for entry in store.list_transactions("proj_1")] == ["a", "b", "c", "d"]
    assert [entry.id for entry in store.transactions_for_task("task_1")] == ["a", "b", "c"]

    with pytest.raises(DuplicateRecordError):
        store.append_transaction(make_txn("a"))


def test_update_task_replaces_derived_fields(store):
    store.add_project(make_project())
    task = store.add_task(make_task())

    store.update_task(task.model_copy(update={"status": TaskStatus.IN_PROGRESS, "progress": 40}))

    stored = store.get_task("task_1")
    assert (stored.status, stored.progress) == (TaskStatus.IN_PROGRESS, 40)


def test_returned_tasks_are_copies(store):
    store.add_project(make_project())
    store.add_task(make_task())

    fetched = store.get_task("task_1")
    fetched.progress = 99

    assert store.get_task("task_1").progress == 0


def test_documents_newest_first(store):
    store.add_project(make_project())
    for doc_id, uploaded in (("doc_a", "2024-01-01T00:00:00"), ("doc_b", "2024-02-01T00:00:00")):
        store.add_document(
            ProjectDocument(
                id=doc_id,
                project_id="proj_1",
                name=f"{doc_id}.pdf",
                main_category=DocumentMainCategory.OWNER,
                sub_category="Contract",
                size="0.01 MB",
                uploaded_by="tester",
                uploaded_date=uploaded,
                url="file:///tmp/x",
            )
        )

    assert [document.id for document in store.list_documents("proj_1")] == ["doc_b", "doc_a"]


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "store.json"
    first = JsonProjectStore(str(path))
    first.add_project(make_project())
    first.add_task(make_task())
    first.append_transaction(make_txn("a"))

    second = JsonProjectStore(str(path))
    assert second.get_project("proj_1").client == "Acme Holdings"
    assert [entry.id for entry in second.transactions_for_task("task_1")] == ["a"]
    with pytest.raises(DuplicateRecordError):
        second.append_transaction(make_txn("a"))


def test_json_store_leaves_no_temp_files(tmp_path):
    store = JsonProjectStore(str(tmp_path / "store.json"))
    store.add_project(make_project())

    assert (tmp_path / "store.json").exists()
    assert list(tmp_path.glob("store-*.tmp")) == []


def test_json_store_failed_write_leaves_store_unchanged(tmp_path, monkeypatch):
    path = tmp_path / "store.json"
    store = JsonProjectStore(str(path))
    store.add_project(make_project())
    store.add_task(make_task())

    def disk_full(src, dst):
        raise OSError("No space left on device")

    monkeypatch.setattr(project_store.os, "replace", disk_full)
    with pytest.raises(OSError):
        store.append_transaction(make_txn("a"))
    with pytest.raises(OSError):
        store.update_task(make_task().model_copy(update={"progress": 40}))
    monkeypatch.undo()

    assert store.transactions_for_task("task_1") == []
    assert store.get_task("task_1").progress == 0
    assert list(tmp_path.glob("store-*.tmp")) == []

    store.append_transaction(make_txn("a"))
    reloaded = JsonProjectStore(str(path))
    assert [entry.id for entry in reloaded.transactions_for_task("task_1")] == ["a"]


def test_json_store_unreadable_file_loads_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonProjectStore(str(path))
    assert store.list_projects() == []


def test_create_store_picks_backend(tmp_path):
    assert type(create_store(None)) is InMemoryProjectStore
    assert isinstance(create_store(str(tmp_path / "s.json")), JsonProjectStore)
