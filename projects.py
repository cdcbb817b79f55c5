"""
projects.py - Project service: store + ledger + reconciliation.

This module is orchestration-only:
1. validate the form and look up linked records
2. build the record (ledger.py)
3. append/persist through the store
4. reconcile the linked task and persist its derived fields
"""

from __future__ import annotations

import secrets
import threading
from datetime import datetime, timezone
from typing import Optional

import pydantic
from pydantic import BaseModel

from errors import RecordNotFoundError, ValidationError
from financials import project_financials
from ledger import build_transaction
from logging_config import get_logger
from models import (
    NewProject,
    Project,
    ProjectFinancials,
    ReconciliationResult,
    Task,
    TaskForm,
    TaskStatus,
    Transaction,
    TransactionForm,
)
from normalize import normalize_amount
from project_store import ProjectStore
from reconcile import apply_reconciliation, linked_transactions, reconcile

logger = get_logger(__name__)


class TransactionOutcome(BaseModel):
    """What recording (or previewing) a transaction did to the ledger and its task."""

    transaction: Transaction
    task: Optional[Task] = None
    reconciliation: Optional[ReconciliationResult] = None
    persisted: bool = True


def _new_id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(6)}"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProjectService:
    def __init__(self, store: ProjectStore) -> None:
        self.store = store
        # Held across read, append, reconcile and update of a task.
        self._task_lock = threading.RLock()

    # -- projects ------------------------------------------------------

    def create_project(self, owner_id: str, new_project: NewProject) -> Project:
        owner = str(owner_id or "").strip()
        if not owner:
            raise ValidationError("owner_id is required to create a project.")

        timestamp = _utc_now()
        project = Project(
            id=_new_id("proj"),
            owner_id=owner,
            created_at=timestamp,
            updated_at=timestamp,
            **new_project.model_dump(),
        )
        return self.store.add_project(project)

    # -- tasks ---------------------------------------------------------

    def add_task(self, project_id: str, form: TaskForm) -> Task:
        """Create a pending task. The contract value must be a positive amount."""
        self.store.get_project(project_id)

        contract_value = normalize_amount(form.contract_value)
        if contract_value is None or contract_value <= 0:
            raise ValidationError(
                f"contract_value must be greater than zero, got {form.contract_value!r}"
            )

        estimated_cost = None
        if form.estimated_cost not in (None, ""):
            estimated_cost = normalize_amount(form.estimated_cost)
            if estimated_cost is None or estimated_cost < 0:
                raise ValidationError(f"Invalid estimated_cost: {form.estimated_cost!r}")

        category = form.category.strip()
        if not category:
            raise ValidationError("Task category is required.")

        try:
            task = Task(
                id=_new_id("task"),
                project_id=project_id,
                name=f"{category} Work",
                category=category,
                status=TaskStatus.PENDING,
                progress=0,
                contract_value=contract_value,
                estimated_cost=estimated_cost,
                contractor_name=form.contractor_name,
                company_name=form.company_name,
                contact_email=form.contact_email,
                contact_phone=form.contact_phone,
                start_date=form.start_date,
                duration=form.duration,
                duration_unit=form.duration_unit,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(str(exc)) from exc

        return self.store.add_task(task)

    def _linked_task(self, project_id: str, form: TransactionForm) -> Optional[Task]:
        task_id = (form.linked_task_id or "").strip()
        if not task_id:
            return None
        task = self.store.get_task(task_id)
        if task.project_id != project_id:
            raise RecordNotFoundError("Task", task_id)
        return task

    # -- transactions --------------------------------------------------

    def record_transaction(self, project_id: str, form: TransactionForm) -> TransactionOutcome:
        """Append a transaction and reconcile the task it pays toward, if any."""
        self.store.get_project(project_id)
        with self._task_lock:
            task = self._linked_task(project_id, form)
            transaction = self.store.append_transaction(build_transaction(form, project_id, task))

            if task is None:
                return TransactionOutcome(transaction=transaction)

            result = reconcile(task, self.store.transactions_for_task(task.id))
            if result.changed:
                task = self.store.update_task(apply_reconciliation(task, result))
        return TransactionOutcome(transaction=transaction, task=task, reconciliation=result)

    def preview_transaction(self, project_id: str, form: TransactionForm) -> TransactionOutcome:
        """Show what recording form would do without writing anything."""
        self.store.get_project(project_id)
        task = self._linked_task(project_id, form)
        transaction = build_transaction(form, project_id, task)

        if task is None:
            return TransactionOutcome(transaction=transaction, persisted=False)

        entries = linked_transactions(self.store.transactions_for_task(task.id), task.id, pending=transaction)
        result = reconcile(task, entries)
        return TransactionOutcome(
            transaction=transaction,
            task=apply_reconciliation(task, result),
            reconciliation=result,
            persisted=False,
        )

    def reconcile_task(self, project_id: str, task_id: str) -> ReconciliationResult:
        """Recompute a task from the stored ledger and persist any change."""
        with self._task_lock:
            task = self.store.get_task(task_id)
            if task.project_id != project_id:
                raise RecordNotFoundError("Task", task_id)

            result = reconcile(task, self.store.transactions_for_task(task_id))
            if result.changed:
                self.store.update_task(apply_reconciliation(task, result))
        return result

    # -- reporting -----------------------------------------------------

    def financials(self, project_id: str) -> ProjectFinancials:
        project = self.store.get_project(project_id)
        return project_financials(
            project,
            self.store.list_tasks(project_id),
            self.store.list_transactions(project_id),
        )
