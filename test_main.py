"""
test_main.py - CLI replay of a transactions CSV against a task list.

Usage:
    pytest test_main.py
"""

from __future__ import annotations

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from describe import format_task_report
from errors import ValidationError
from main import load_tasks, load_transactions, main, replay_ledger
from models import TaskStatus

TASKS = [
    {"id": "foundation", "category": "Foundation", "contract_value": 100000},
    {"id": "plumbing", "category": "Plumbing", "contract_value": "50,000", "status": "completed"},
    {"id": "electrical", "category": "Electrical", "contract_value": "75000"},
]

CSV_TEXT = (
    "id,date,description,category,amount,payment_method,status,linked_task_id\n"
    "t1,2024-02-01,Initial Payment,Payment,500000,Bank,completed,\n"
    "t2,2024-02-15,Foundation deposit,Labor,-40000,Check,completed,foundation\n"
    "t3,2024-02-20,Plumbing extra,Labor,-5000,Zelle,completed,plumbing\n"
    ",,,,,,,\n"
    "t4,2024-03-01,Foundation final,Labor,-60000,Bank,pending,foundation\n"
    "t5,2024-03-02,Bad row,Labor,oops,Bank,completed,electrical\n"
    "t6,2024-03-03,Stray,Labor,-10,Bank,completed,roofing\n"
)


@pytest.fixture
def inputs(tmp_path):
    tasks_path = tmp_path / "tasks.json"
    csv_path = tmp_path / "transactions.csv"
    tasks_path.write_text(json.dumps(TASKS), encoding="utf-8")
    csv_path.write_text(CSV_TEXT, encoding="utf-8")
    return str(tasks_path), str(csv_path)


def test_load_tasks_parses_dollars_to_cents(inputs):
    tasks = load_tasks(inputs[0])
    assert [task.contract_value for task in tasks] == [10_000_000, 5_000_000, 7_500_000]
    assert tasks[1].status == TaskStatus.COMPLETED
    assert tasks[1].progress == 100
    assert tasks[0].name == "Foundation Work"


def test_load_tasks_rejects_zero_contract(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps([{"category": "Framing", "contract_value": 0}]), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_tasks(str(path))


def test_load_tasks_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_tasks(str(tmp_path / "missing.json"))


def test_load_transactions_drops_blank_rows(inputs):
    df = load_transactions(inputs[1])
    assert list(df["id"]) == ["t1", "t2", "t3", "t4", "t5", "t6"]


def test_load_transactions_requires_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("description\nhello\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_transactions(str(path))


def test_replay_reconciles_in_order(inputs):
    tasks, results = replay_ledger(load_tasks(inputs[0]), load_transactions(inputs[1]))
    by_id = {task.id: task for task in tasks}

    assert (by_id["foundation"].status, by_id["foundation"].progress) == (TaskStatus.COMPLETED, 100)
    assert (by_id["plumbing"].status, by_id["plumbing"].progress) == (TaskStatus.COMPLETED, 100)
    assert (by_id["electrical"].status, by_id["electrical"].progress) == (TaskStatus.PENDING, 0)

    assert results["foundation"].total_paid == 10_000_000
    assert results["plumbing"].total_paid == 500_000
    assert results["electrical"].total_paid == 0


def test_task_report_text(inputs):
    tasks, results = replay_ledger(load_tasks(inputs[0]), load_transactions(inputs[1]))
    report = format_task_report(tasks, results)

    assert "TASK PAYMENT RECONCILIATION - 3 task(s)" in report
    assert "Foundation Work" in report
    assert "$100,000.00" in report


def test_main_json_output(inputs, capsys):
    main(["--tasks", inputs[0], "--csv", inputs[1], "--json"])
    report = json.loads(capsys.readouterr().out)

    foundation = next(item for item in report if item["task_id"] == "foundation")
    assert foundation["status"] == "completed"
    assert foundation["remaining_balance"] == 0


def test_main_exits_on_missing_csv(inputs, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["--tasks", inputs[0], "--csv", str(tmp_path / "missing.csv")])
    assert excinfo.value.code == 1
