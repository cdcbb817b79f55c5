"""
financials.py - Project-level money summary.

All figures are integer cents. Pending transactions count toward the
totals and are also reported on their own as pending_total.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from models import (
    Project,
    ProjectFinancials,
    Task,
    TaskFinancials,
    Transaction,
    TransactionStatus,
)
from reconcile import remaining_balance, total_paid

RECENT_TRANSACTION_COUNT = 5


def task_financials(task: Task, ledger: Iterable[Transaction]) -> TaskFinancials:
    paid = total_paid(entry for entry in ledger if entry.linked_task_id == task.id)
    return TaskFinancials(
        task_id=task.id,
        name=task.name,
        contract_value=task.contract_value,
        total_paid=paid,
        remaining_balance=remaining_balance(task, paid),
        status=task.status,
        progress=task.progress,
    )


def project_financials(
    project: Project,
    tasks: list[Task],
    transactions: list[Transaction],
) -> ProjectFinancials:
    received = sum(entry.amount for entry in transactions if entry.is_income)
    spent = sum(-entry.amount for entry in transactions if entry.is_expense)
    pending_total = sum(
        abs(entry.amount) for entry in transactions if entry.status == TransactionStatus.PENDING
    )

    by_method: dict[str, int] = defaultdict(int)
    for entry in transactions:
        by_method[entry.payment_method.value] += abs(entry.amount)

    # Stable sort keeps ledger order for same-day entries, newest appended first.
    recent = sorted(reversed(transactions), key=lambda entry: entry.date, reverse=True)

    received_pct = round(received * 100 / project.budget, 1) if project.budget > 0 else 0.0

    return ProjectFinancials(
        project_id=project.id,
        budget=project.budget,
        received=received,
        spent=spent,
        pending_total=pending_total,
        outstanding=max(project.budget - received, 0),
        net=received - spent,
        received_pct=received_pct,
        by_payment_method=dict(by_method),
        recent_transactions=recent[:RECENT_TRANSACTION_COUNT],
        tasks=[task_financials(task, transactions) for task in tasks],
    )
