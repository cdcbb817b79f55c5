"""
project_store.py - Repository for projects, tasks, the transaction ledger and documents.

Two backends share one interface (ProjectStore):

    InMemoryProjectStore   lock-guarded dicts/lists, reset on restart
    JsonProjectStore       same semantics, persisted to one JSON file
                           with temp-file + os.replace writes

The ledger is append-only: transactions are added and queried, never
updated or removed. Tasks are the only records updated in place, and
only through update_task.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from errors import DuplicateRecordError, RecordNotFoundError
from logging_config import get_logger
from models import Project, ProjectDocument, Task, Transaction

logger = get_logger(__name__)


class ProjectStore(Protocol):
    def add_project(self, project: Project) -> Project: ...

    def get_project(self, project_id: str) -> Project: ...

    def list_projects(self, owner_id: Optional[str] = None) -> list[Project]: ...

    def add_task(self, task: Task) -> Task: ...

    def get_task(self, task_id: str) -> Task: ...

    def update_task(self, task: Task) -> Task: ...

    def list_tasks(self, project_id: str) -> list[Task]: ...

    def append_transaction(self, transaction: Transaction) -> Transaction: ...

    def list_transactions(self, project_id: str) -> list[Transaction]: ...

    def transactions_for_task(self, task_id: str) -> list[Transaction]: ...

    def add_document(self, document: ProjectDocument) -> ProjectDocument: ...

    def list_documents(self, project_id: str) -> list[ProjectDocument]: ...


class StoreState(BaseModel):
    """Serializable snapshot of every record in a store."""

    model_config = ConfigDict(extra="ignore")

    projects: dict[str, Project] = Field(default_factory=dict)
    tasks: dict[str, Task] = Field(default_factory=dict)
    transactions: list[Transaction] = Field(default_factory=list)
    documents: list[ProjectDocument] = Field(default_factory=list)


class InMemoryProjectStore:
    """Process-local store. Every public method is safe to call from multiple threads."""

    def __init__(self, state: Optional[StoreState] = None) -> None:
        self._state = state or StoreState()
        self._transaction_ids = {entry.id for entry in self._state.transactions}
        self._lock = threading.RLock()

    def _changed(self) -> None:
        """Hook called after every mutation, with the lock held."""

    def _require_project(self, project_id: str) -> Project:
        project = self._state.projects.get(project_id)
        if project is None:
            raise RecordNotFoundError("Project", project_id)
        return project

    # -- projects ------------------------------------------------------

    def add_project(self, project: Project) -> Project:
        with self._lock:
            if project.id in self._state.projects:
                raise DuplicateRecordError("Project", project.id)
            self._state.projects[project.id] = project.model_copy(deep=True)
            self._changed()
        logger.info("project_added | project_id=%s | owner_id=%s", project.id, project.owner_id)
        return project

    def get_project(self, project_id: str) -> Project:
        with self._lock:
            return self._require_project(project_id).model_copy(deep=True)

    def list_projects(self, owner_id: Optional[str] = None) -> list[Project]:
        with self._lock:
            projects = [
                project.model_copy(deep=True)
                for project in self._state.projects.values()
                if owner_id is None or project.owner_id == owner_id
            ]
        projects.sort(key=lambda project: project.created_at, reverse=True)
        return projects

    # -- tasks ---------------------------------------------------------

    def add_task(self, task: Task) -> Task:
        with self._lock:
            self._require_project(task.project_id)
            if task.id in self._state.tasks:
                raise DuplicateRecordError("Task", task.id)
            self._state.tasks[task.id] = task.model_copy(deep=True)
            self._changed()
        logger.info(
            "task_added | task_id=%s | project_id=%s | contract_value=%s",
            task.id,
            task.project_id,
            task.contract_value,
        )
        return task

    def get_task(self, task_id: str) -> Task:
        with self._lock:
            task = self._state.tasks.get(task_id)
            if task is None:
                raise RecordNotFoundError("Task", task_id)
            return task.model_copy(deep=True)

    def update_task(self, task: Task) -> Task:
        with self._lock:
            if task.id not in self._state.tasks:
                raise RecordNotFoundError("Task", task.id)
            self._state.tasks[task.id] = task.model_copy(deep=True)
            self._changed()
        return task

    def list_tasks(self, project_id: str) -> list[Task]:
        with self._lock:
            return [
                task.model_copy(deep=True)
                for task in self._state.tasks.values()
                if task.project_id == project_id
            ]

    # -- ledger --------------------------------------------------------

    def append_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            self._require_project(transaction.project_id)
            if transaction.id in self._transaction_ids:
                raise DuplicateRecordError("Transaction", transaction.id)
            self._state.transactions.append(transaction)
            self._transaction_ids.add(transaction.id)
            self._changed()
        logger.info(
            "transaction_appended | id=%s | project_id=%s | amount=%s | linked_task_id=%s",
            transaction.id,
            transaction.project_id,
            transaction.amount,
            transaction.linked_task_id,
        )
        return transaction

    def list_transactions(self, project_id: str) -> list[Transaction]:
        with self._lock:
            return [entry for entry in self._state.transactions if entry.project_id == project_id]

    def transactions_for_task(self, task_id: str) -> list[Transaction]:
        with self._lock:
            return [entry for entry in self._state.transactions if entry.linked_task_id == task_id]

    # -- documents -----------------------------------------------------

    def add_document(self, document: ProjectDocument) -> ProjectDocument:
        with self._lock:
            self._require_project(document.project_id)
            if any(existing.id == document.id for existing in self._state.documents):
                raise DuplicateRecordError("Document", document.id)
            self._state.documents.append(document.model_copy(deep=True))
            self._changed()
        return document

    def list_documents(self, project_id: str) -> list[ProjectDocument]:
        with self._lock:
            documents = [
                document.model_copy(deep=True)
                for document in self._state.documents
                if document.project_id == project_id
            ]
        documents.sort(key=lambda document: document.uploaded_date, reverse=True)
        return documents

    def snapshot(self) -> StoreState:
        with self._lock:
            return self._state.model_copy(deep=True)


class JsonProjectStore(InMemoryProjectStore):
    """Disk-backed store: one JSON file, rewritten atomically after each change.

    A failed write rolls memory back to the last state that reached disk.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path).resolve()
        super().__init__(self._load())
        self._saved = self._state.model_copy(deep=True)

    def _load(self) -> StoreState:
        """Load state from disk, returning an empty store if missing/unreadable."""
        if not self.path.exists():
            return StoreState()

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return StoreState.model_validate(raw)
        except Exception as exc:
            logger.warning(
                "store_load_warning | path=%s | error_type=%s | error=%s | fallback='empty'",
                self.path,
                type(exc).__name__,
                exc,
            )
            return StoreState()

    def _changed(self) -> None:
        try:
            self._write(self._state.model_dump(mode="json"))
        except Exception as exc:
            logger.error(
                "store_write_error | path=%s | error_type=%s | error=%s | action='rollback'",
                self.path,
                type(exc).__name__,
                exc,
            )
            self._state = self._saved.model_copy(deep=True)
            self._transaction_ids = {entry.id for entry in self._state.transactions}
            raise
        self._saved = self._state.model_copy(deep=True)

    def _write(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Optional[Path] = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=str(self.path.parent),
                delete=False,
                suffix=".tmp",
                prefix="store-",
            ) as tmp_file:
                tmp_path = Path(tmp_file.name)
                json.dump(payload, tmp_file, ensure_ascii=False, indent=2)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())

            os.replace(tmp_path, self.path)
        except Exception:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise


def create_store(store_file: Optional[str] = None) -> InMemoryProjectStore:
    """Pick the backend: JSON file when a path is configured, memory otherwise."""
    if store_file:
        logger.info("store_backend | backend=json | path=%s", store_file)
        return JsonProjectStore(store_file)
    logger.info("store_backend | backend=memory")
    return InMemoryProjectStore()
