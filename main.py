"""
main.py - CLI: replay a transactions CSV against a set of tasks.

This module is orchestration-only:
1. load tasks (JSON) and transactions (CSV)
2. append each transaction to an in-memory ledger, in CSV order
3. reconcile the linked task after every append
4. print the task report
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from describe import format_task_report, task_report_json
from errors import SitebookError, ValidationError
from ledger import generate_transaction_id, generate_transaction_reference
from logging_config import get_logger, setup_logging
from models import (
    PaymentMethod,
    Project,
    ReconciliationResult,
    Task,
    TaskStatus,
    Transaction,
    TransactionCategory,
    TransactionStatus,
)
from normalize import normalize_amount, normalize_date
from project_store import InMemoryProjectStore
from reconcile import apply_reconciliation, reconcile

logger = get_logger("sitebook")

CLI_PROJECT_ID = "cli"
REQUIRED_COLUMNS = ["amount", "date"]
OPTIONAL_COLUMNS = [
    "id",
    "linked_task_id",
    "description",
    "category",
    "payment_method",
    "status",
    "reference",
]


def load_tasks(tasks_path: str) -> list[Task]:
    """Load tasks from a JSON list. contract_value is given in dollars."""
    path = Path(str(tasks_path or "").strip())
    if not path.is_file():
        raise FileNotFoundError(f"Tasks file not found: {tasks_path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Tasks file is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise ValidationError("Tasks file must contain a JSON list of tasks.")

    tasks: list[Task] = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Task #{index} must be a JSON object.")
        contract_value = normalize_amount(item.get("contract_value"))
        if contract_value is None or contract_value <= 0:
            raise ValidationError(
                f"Task #{index} contract_value must be greater than zero, "
                f"got {item.get('contract_value')!r}"
            )
        category = str(item.get("category") or "General")
        try:
            status = TaskStatus(item.get("status") or TaskStatus.PENDING.value)
        except ValueError as exc:
            raise ValidationError(f"Task #{index} has unknown status {item.get('status')!r}") from exc
        progress = 100 if status == TaskStatus.COMPLETED else int(item.get("progress") or 0)
        tasks.append(
            Task(
                id=str(item.get("id") or f"task_{index}"),
                project_id=CLI_PROJECT_ID,
                name=str(item.get("name") or f"{category} Work"),
                category=category,
                status=status,
                progress=progress,
                contract_value=contract_value,
                contractor_name=str(item.get("contractor_name") or ""),
                company_name=str(item.get("company_name") or ""),
            )
        )

    logger.info("tasks_loaded | path=%s | count=%s", path, len(tasks))
    return tasks


def load_transactions(csv_path: str) -> pd.DataFrame:
    """Load and validate a project transactions CSV file."""
    if csv_path is None:
        raise ValueError("csv_path cannot be None")

    csv_path = str(csv_path).strip()
    if not csv_path:
        raise ValueError("csv_path cannot be empty")

    if not os.path.exists(csv_path):
        raise FileNotFoundError(
            f"Transactions CSV not found: {csv_path}\n"
            "Provide a valid CSV path with --csv"
        )

    try:
        df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype=str, keep_default_na=False)
    except UnicodeDecodeError:
        logger.warning(
            "csv_encoding_warning | path=%s | reason='utf-8 decode failed' | fallback=latin-1",
            csv_path,
        )
        df = pd.read_csv(csv_path, encoding="latin-1", dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise ValueError(f"Transactions CSV is empty: {csv_path}") from exc
    except Exception as exc:
        raise ValueError(f"Failed to read CSV '{csv_path}': {exc}") from exc

    df.columns = [str(col).strip().lower() for col in df.columns]
    # Drop rows where every cell is blank.
    df = df[df.apply(lambda column: column.str.strip()).ne("").any(axis=1)].copy()

    if df.empty:
        raise ValueError(f"Transactions CSV is empty: {csv_path}")

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(
            f"Transactions CSV missing required columns: {missing}\n"
            f"Required: {REQUIRED_COLUMNS}\n"
            f"Found: {list(df.columns)}"
        )

    for optional in OPTIONAL_COLUMNS:
        if optional not in df.columns:
            df[optional] = ""
    for column in df.columns:
        df[column] = df[column].astype(str).str.strip()

    logger.info("csv_loaded | path=%s | rows=%s | columns=%s", csv_path, len(df), list(df.columns))
    return df


def _enum_or_default(enum_cls, raw: str, default):
    try:
        return enum_cls(raw) if raw else default
    except ValueError:
        logger.warning("csv_value_warning | field=%s | raw=%r | fallback=%s", enum_cls.__name__, raw, default.value)
        return default


def row_to_transaction(row: dict[str, Any], row_number: int) -> Optional[Transaction]:
    """Build a ledger entry from a CSV row. Amounts keep the sign they have in the CSV."""
    amount = normalize_amount(row.get("amount"))
    if amount is None or amount == 0:
        logger.warning("csv_amount_warning | row=%s | raw=%r | action=skipped", row_number, row.get("amount"))
        return None

    entry_date = normalize_date(row.get("date"))
    if not entry_date:
        logger.warning("csv_date_warning | row=%s | raw=%r | action=skipped", row_number, row.get("date"))
        return None

    return Transaction(
        id=row.get("id") or generate_transaction_id(),
        project_id=CLI_PROJECT_ID,
        date=entry_date,
        description=row.get("description") or "",
        category=_enum_or_default(TransactionCategory, row.get("category", ""), TransactionCategory.PAYMENT),
        amount=amount,
        payment_method=_enum_or_default(PaymentMethod, row.get("payment_method", ""), PaymentMethod.BANK),
        status=_enum_or_default(TransactionStatus, row.get("status", ""), TransactionStatus.COMPLETED),
        reference=row.get("reference") or generate_transaction_reference(),
        linked_task_id=row.get("linked_task_id") or None,
    )


def replay_ledger(
    tasks: list[Task],
    transactions_df: pd.DataFrame,
) -> tuple[list[Task], dict[str, ReconciliationResult]]:
    """Append rows in order, reconciling the linked task after each append."""
    timestamp = datetime.now(timezone.utc).isoformat()
    store = InMemoryProjectStore()
    store.add_project(
        Project(
            id=CLI_PROJECT_ID,
            owner_id="cli",
            name="CLI replay",
            client="-",
            budget=0,
            deadline="",
            created_at=timestamp,
            updated_at=timestamp,
        )
    )
    for task in tasks:
        store.add_task(task)

    task_ids = {task.id for task in tasks}
    skipped = 0
    unlinked = 0
    for row_number, row in enumerate(transactions_df.to_dict(orient="records"), start=2):
        transaction = row_to_transaction(row, row_number)
        if transaction is None:
            skipped += 1
            continue
        store.append_transaction(transaction)

        task_id = transaction.linked_task_id
        if task_id is None:
            continue
        if task_id not in task_ids:
            unlinked += 1
            logger.warning("csv_link_warning | row=%s | linked_task_id=%s | reason='unknown task'", row_number, task_id)
            continue

        task = store.get_task(task_id)
        result = reconcile(task, store.transactions_for_task(task_id))
        if result.changed:
            store.update_task(apply_reconciliation(task, result))

    final_tasks = store.list_tasks(CLI_PROJECT_ID)
    results = {task.id: reconcile(task, store.transactions_for_task(task.id)) for task in final_tasks}
    logger.info(
        "replay_complete | rows=%s | skipped=%s | unknown_task_links=%s",
        len(transactions_df),
        skipped,
        unlinked,
    )
    return final_tasks, results


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sitebook",
        description=(
            "Construction project ledger\n"
            "Replays a transactions CSV and reports each task's payment status."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s --tasks tasks.json --csv transactions.csv\n"
            "  %(prog)s --tasks tasks.json --csv transactions.csv --json\n"
        ),
    )
    parser.add_argument("--tasks", "-t", type=str, required=True, help="Path to the tasks JSON file")
    parser.add_argument("--csv", "-c", type=str, required=True, help="Path to the transactions CSV file")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-json", action="store_true", help="Output logs as JSON lines")

    args = parser.parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_format=args.log_json,
    )

    try:
        tasks = load_tasks(args.tasks)
        transactions_df = load_transactions(args.csv)
        final_tasks, results = replay_ledger(tasks, transactions_df)
        if args.json:
            print(json.dumps(task_report_json(final_tasks, results), indent=2))
        else:
            print(format_task_report(final_tasks, results))
    except (FileNotFoundError, ValueError, SitebookError) as exc:
        logger.error("cli_error | type=%s | error=%s", type(exc).__name__, exc)
        print(f"\nError: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        raise SystemExit(130)


if __name__ == "__main__":
    main()
