"""
describe.py - Human-readable and JSON-ready formatting.

Converts ledger entries and reconciliation results into:
- terminal-friendly text for the CLI
- plain dictionaries for --json output and API payloads
"""

from __future__ import annotations

from typing import Any, Optional

from logging_config import get_logger
from models import ReconciliationResult, Task, TaskStatus, Transaction

logger = get_logger(__name__)

STATUS_NAMES: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}

OUTPUT_WIDTH = 78
SEPARATOR = "=" * OUTPUT_WIDTH


def format_money(cents: int) -> str:
    """Render cents as dollars, e.g. -123456 -> '-$1,234.56'."""
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(int(cents)), 100)
    return f"{sign}${dollars:,}.{remainder:02d}"


def format_transaction_details(transaction: Transaction) -> str:
    """One line per known detail: task, contractor, then payment method."""
    details = transaction.details
    if details is None:
        return "-"

    lines: list[str] = []
    if details.task_name:
        lines.append(f"Task: {details.task_name}")
    if details.contractor_name:
        lines.append(f"Contractor: {details.contractor_name}")

    payment = details.payment_details
    if payment.credit_card:
        lines.append(f"{payment.credit_card.type} ending in {payment.credit_card.last_four}")
    elif payment.check:
        lines.append(f"Check #{payment.check.check_number} from {payment.check.bank_name}")
    elif payment.digital:
        lines.append(f"{payment.digital.platform}: {payment.digital.username}")

    return "\n".join(lines) if lines else "-"


def _progress_bar(progress: int, width: int = 20) -> str:
    filled = round(width * max(0, min(progress, 100)) / 100)
    return "#" * filled + "." * (width - filled)


def format_task_report(
    tasks: list[Task],
    results: Optional[dict[str, ReconciliationResult]] = None,
) -> str:
    """Fixed-width table of tasks with paid/remaining figures when available."""
    results = results or {}
    lines: list[str] = ["", SEPARATOR, f"  TASK PAYMENT RECONCILIATION - {len(tasks)} task(s)", SEPARATOR, ""]

    if not tasks:
        lines.append("  (no tasks)")
    else:
        lines.append(f"  {'Task':<22} {'Status':<12} {'Contract':>14} {'Paid':>14} {'Progress':>8}")
        lines.append(f"  {'-' * 22} {'-' * 12} {'-' * 14} {'-' * 14} {'-' * 8}")
        for task in tasks:
            name = task.name[:20] + ".." if len(task.name) > 22 else task.name
            result = results.get(task.id)
            paid = format_money(result.total_paid) if result else "-"
            lines.append(
                f"  {name:<22} {STATUS_NAMES[task.status]:<12} "
                f"{format_money(task.contract_value):>14} {paid:>14} {task.progress:>7}%"
            )
            lines.append(f"  {'':<22} [{_progress_bar(task.progress)}]")

    lines.append("")
    lines.append(SEPARATOR)
    return "\n".join(lines)


def task_report_json(
    tasks: list[Task],
    results: Optional[dict[str, ReconciliationResult]] = None,
) -> list[dict[str, Any]]:
    results = results or {}
    report: list[dict[str, Any]] = []
    for task in tasks:
        result = results.get(task.id)
        report.append(
            {
                "task_id": task.id,
                "name": task.name,
                "status": task.status.value,
                "progress": task.progress,
                "contract_value": task.contract_value,
                "total_paid": result.total_paid if result else None,
                "remaining_balance": result.remaining_balance if result else None,
                "payment_progress": round(result.payment_progress, 2) if result else None,
            }
        )
    return report
