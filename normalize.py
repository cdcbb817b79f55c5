"""
normalize.py - Input normalization.

Three normalizers:
    normalize_amount(value)     -> signed integer cents, or None
    normalize_date(date_str)    -> ISO YYYY-MM-DD, or ''
    format_file_size(n_bytes)   -> display size such as '1.25 MB'

Design principles:
    - Pure transformations, no I/O
    - Invalid input degrades to a neutral value and is logged; callers
      decide whether that is an error
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as dateparser

from logging_config import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
EMPTY_TOKENS = {"n/a", "na", "none", "null", "unknown", "nan"}
CURRENCY_SYMBOLS = ("$", "€", "£", "¥")


def normalize_amount(value: Any) -> Optional[int]:
    """Parse a currency amount into signed integer cents.

    Accepts ints, floats and strings such as '40000', '$1,250.50',
    '-75.00' or '(75.00)'. Half cents round away from zero. Returns None
    when the value cannot be read as an amount.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value * 100

    if isinstance(value, float):
        if not math.isfinite(value):
            logger.warning("normalize_amount | non_finite=%r | fallback=None", value)
            return None
        text = repr(value)
    else:
        text = str(value)

    cleaned = text.strip()
    if not cleaned or cleaned.lower() in EMPTY_TOKENS:
        return None

    is_negative = (
        cleaned.startswith("-")
        or (cleaned.startswith("(") and cleaned.endswith(")"))
        or "-$" in cleaned
        or "$-" in cleaned
    )
    for symbol in CURRENCY_SYMBOLS:
        cleaned = cleaned.replace(symbol, "")
    cleaned = cleaned.replace(",", "").replace("(", "").replace(")", "").strip()
    cleaned = cleaned.lstrip("-+").strip()
    if not cleaned:
        return None

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        logger.warning("normalize_amount | parse_failed | raw=%r | fallback=None", value)
        return None
    if not amount.is_finite():
        logger.warning("normalize_amount | non_finite_parsed=%r | fallback=None", value)
        return None

    try:
        cents = int((amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())
    except InvalidOperation:
        logger.warning("normalize_amount | out_of_range | raw=%r | fallback=None", value)
        return None
    if is_negative:
        cents = -cents
    logger.debug("normalize_amount | raw=%r | cents=%s", value, cents)
    return cents


def normalize_date(date_str: Any) -> str:
    """Normalize date text to ISO YYYY-MM-DD."""
    if date_str is None:
        return ""

    date_str = str(date_str).strip()
    if not date_str or date_str.lower() in EMPTY_TOKENS:
        return ""

    if not any(char.isdigit() for char in date_str):
        logger.debug("normalize_date | rejected_no_digits | raw=%r", date_str)
        return ""

    # Bare numbers and month/year fragments are not a full date.
    if re.fullmatch(r"\d+", date_str) or re.fullmatch(r"\d{1,2}[/-]\d{2,4}", date_str):
        return ""

    try:
        parsed = dateparser.parse(date_str, dayfirst=False)
    except (ValueError, TypeError, OverflowError) as exc:
        logger.warning(
            "normalize_date | parse_error=%s | raw=%r | fallback=''",
            type(exc).__name__,
            date_str,
        )
        return ""

    if parsed is None:
        return ""

    if parsed.year < 2000 or parsed.year > datetime.now().year + 10:
        logger.warning("normalize_date | suspicious_year=%s | raw=%r", parsed.year, date_str)

    return parsed.strftime("%Y-%m-%d")


def format_file_size(n_bytes: int) -> str:
    """Render a byte count the way documents and attachments display it."""
    megabytes = max(int(n_bytes or 0), 0) / 1024 / 1024
    return f"{megabytes:.2f} MB"
