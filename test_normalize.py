"""
test_normalize.py - Amount, date and file size normalization checks.

Usage:
    pytest test_normalize.py
"""

from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from normalize import format_file_size, normalize_amount, normalize_date


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("40000", 4_000_000),
        ("$1,250.50", 125_050),
        ("-75.00", -7_500),
        ("(75.00)", -7_500),
        ("$-12.30", -1_230),
        ("0.005", 1),
        ("  19.99 ", 1_999),
        (40000, 4_000_000),
        (12.34, 1_234),
    ],
)
def test_normalize_amount_parses_to_cents(raw, expected):
    assert normalize_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "n/a", "abc", "$", float("nan"), float("inf"), True, "1" * 30])
def test_normalize_amount_rejects_unreadable_input(raw):
    assert normalize_amount(raw) is None


def test_normalize_amount_avoids_float_drift():
    # 0.1 + 0.2 style drift must not leak into cents.
    assert normalize_amount(0.1) + normalize_amount(0.2) == normalize_amount("0.30")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-02-01", "2024-02-01"),
        ("02/15/2024", "2024-02-15"),
        ("Feb 20, 2024", "2024-02-20"),
    ],
)
def test_normalize_date_to_iso(raw, expected):
    assert normalize_date(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "unknown", "2024", "02/24", "no digits"])
def test_normalize_date_rejects_partial_dates(raw):
    assert normalize_date(raw) == ""


def test_format_file_size():
    assert format_file_size(0) == "0.00 MB"
    assert format_file_size(1024 * 1024) == "1.00 MB"
    assert format_file_size(int(2.5 * 1024 * 1024)) == "2.50 MB"
    assert format_file_size(-5) == "0.00 MB"
