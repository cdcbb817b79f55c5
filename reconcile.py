"""
reconcile.py - Task payment reconciliation.

Derives a task's status and progress from the transactions linked to it:

    total_paid        = sum(|amount|) over the linked transactions
    payment_progress  = total_paid / contract_value * 100

Transition rule (evaluated in order, forward only):
    1. payment_progress >= 100 and status != completed -> completed, 100
    2. payment_progress > 0 and status == pending      -> in-progress, round(pp)
    3. otherwise                                       -> unchanged

A completed task stays pinned at 100 and an in-progress task keeps its
progress until it completes. Every function here is pure; callers
persist the result.

contract_value > 0 is a precondition enforced when the task is created.
"""

from __future__ import annotations

from typing import Iterable, Optional

from logging_config import get_logger
from models import ReconciliationResult, Task, TaskStatus, Transaction

logger = get_logger(__name__)


def linked_transactions(
    ledger: Iterable[Transaction],
    task_id: str,
    pending: Optional[Transaction] = None,
) -> list[Transaction]:
    """Filter a ledger down to the transactions linked to task_id.

    pending is a not-yet-persisted transaction to include when previewing
    the effect of an in-flight addition.
    """
    entries = list(ledger)
    if pending is not None:
        entries.append(pending)
    return [entry for entry in entries if entry.linked_task_id == task_id]


def total_paid(transactions: Iterable[Transaction]) -> int:
    """Sum of absolute amounts, in cents. Sign encodes direction, not progress."""
    return sum(abs(entry.amount) for entry in transactions)


def remaining_balance(task: Task, paid: int) -> int:
    return max(task.contract_value - paid, 0)


def payment_progress(task: Task, paid: int) -> float:
    """Unclamped percentage of the contract value paid so far."""
    return paid * 100 / task.contract_value


def _rounded_percent(paid: int, contract_value: int) -> int:
    # Integer half-up rounding of paid / contract * 100.
    return (2 * paid * 100 + contract_value) // (2 * contract_value)


def reconcile(task: Task, transactions: Iterable[Transaction]) -> ReconciliationResult:
    """Compute the new (status, progress) for task from its linked transactions.

    transactions must already be filtered to this task (see
    linked_transactions). The input task is never modified.
    """
    paid = total_paid(transactions)
    contract = task.contract_value

    status = task.status
    progress = task.progress

    if paid >= contract and task.status != TaskStatus.COMPLETED:
        status = TaskStatus.COMPLETED
        progress = 100
    elif paid > 0 and task.status == TaskStatus.PENDING:
        status = TaskStatus.IN_PROGRESS
        progress = _rounded_percent(paid, contract)

    changed = status != task.status or progress != task.progress
    if changed:
        logger.info(
            "task_reconciled | task_id=%s | status=%s->%s | progress=%s->%s | paid=%s | contract=%s",
            task.id,
            task.status.value,
            status.value,
            task.progress,
            progress,
            paid,
            contract,
        )

    return ReconciliationResult(
        task_id=task.id,
        status=status,
        progress=progress,
        total_paid=paid,
        remaining_balance=remaining_balance(task, paid),
        payment_progress=payment_progress(task, paid),
        changed=changed,
    )


def apply_reconciliation(task: Task, result: ReconciliationResult) -> Task:
    """Return a copy of task carrying the reconciled status and progress."""
    if result.task_id != task.id:
        raise ValueError(
            f"Reconciliation result for task {result.task_id} cannot be applied to {task.id}"
        )
    return task.model_copy(update={"status": result.status, "progress": result.progress})
