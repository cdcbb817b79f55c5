"""
ledger.py - Turning submitted transaction forms into ledger entries.

    build_transaction(form, project_id, task)  -> Transaction
    generate_transaction_reference()           -> 'TRX-<6 digits>-<3 digits>'
    generate_transaction_id()                  -> 'TRX-<epoch ms>-<9 base36>'

No I/O here: the project service appends the result to the store.
"""

from __future__ import annotations

import secrets
import string
import time
from datetime import date as date_cls
from datetime import datetime, timezone
from typing import Optional

from errors import ValidationError
from logging_config import get_logger
from models import (
    DIGITAL_PAYMENT_METHODS,
    Attachment,
    CheckDetails,
    CreditCardDetails,
    DigitalPaymentDetails,
    PaymentDetails,
    PaymentMethod,
    Task,
    Transaction,
    TransactionCategory,
    TransactionDetails,
    TransactionForm,
)
from normalize import format_file_size, normalize_amount, normalize_date

logger = get_logger(__name__)

REFERENCE_PREFIX = "TRX"
ID_ALPHABET = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_transaction_reference(now_ms: Optional[int] = None) -> str:
    """Short reference shown to users: last six digits of the clock plus three random digits."""
    stamp = str(now_ms if now_ms is not None else _now_ms())[-6:]
    return f"{REFERENCE_PREFIX}-{stamp}-{secrets.randbelow(1000):03d}"


def generate_transaction_id(now_ms: Optional[int] = None) -> str:
    stamp = now_ms if now_ms is not None else _now_ms()
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(9))
    return f"{REFERENCE_PREFIX}-{stamp}-{suffix}"


def signed_amount(category: TransactionCategory, cents: int) -> int:
    """Owner payments are money in; every other category is a cost."""
    magnitude = abs(cents)
    return magnitude if category == TransactionCategory.PAYMENT else -magnitude


def build_payment_details(form: TransactionForm) -> PaymentDetails:
    method = form.payment_method
    if method == PaymentMethod.CREDIT:
        return PaymentDetails(
            credit_card=CreditCardDetails(
                type=form.credit_card_type,
                last_four=form.last_four_digits[-4:],
            )
        )
    if method == PaymentMethod.CHECK:
        return PaymentDetails(
            check=CheckDetails(bank_name=form.bank_name, check_number=form.check_number)
        )
    if method in DIGITAL_PAYMENT_METHODS:
        return PaymentDetails(
            digital=DigitalPaymentDetails(
                platform=method.value,
                username=form.digital_payment_username,
            )
        )
    return PaymentDetails()


def build_transaction(
    form: TransactionForm,
    project_id: str,
    task: Optional[Task] = None,
    transaction_id: Optional[str] = None,
) -> Transaction:
    """Validate a transaction form and build the immutable ledger entry.

    task is the task named by form.linked_task_id, already looked up by
    the caller. Raises ValidationError for a missing or non-positive amount,
    an unreadable date, or a task that does not match the form's link.
    """
    cents = normalize_amount(form.amount)
    if cents is None or cents <= 0:
        raise ValidationError(f"Transaction amount must be a positive number, got {form.amount!r}")

    if form.date:
        entry_date = normalize_date(form.date)
        if not entry_date:
            raise ValidationError(f"Unreadable transaction date: {form.date!r}")
    else:
        entry_date = date_cls.today().isoformat()

    linked_task_id = (form.linked_task_id or "").strip() or None
    if task is not None and task.id != linked_task_id:
        raise ValidationError(
            f"Task {task.id} does not match linked_task_id {linked_task_id!r}"
        )

    reference = (form.reference or "").strip() or generate_transaction_reference()

    details: Optional[TransactionDetails] = None
    if task is not None:
        details = TransactionDetails(
            task_id=task.id,
            task_name=task.name,
            contractor_name=task.contractor_name or None,
            company_name=task.company_name or None,
            payment_details=build_payment_details(form),
        )

    uploaded_at = datetime.now(timezone.utc).isoformat()
    attachments = [
        Attachment(
            id=f"{reference}-{index}",
            name=upload.name,
            type=upload.content_type,
            size=format_file_size(upload.size_bytes),
            url=upload.url,
            uploaded_at=uploaded_at,
        )
        for index, upload in enumerate(form.attachments, start=1)
    ]

    transaction = Transaction(
        id=transaction_id or generate_transaction_id(),
        project_id=project_id,
        date=entry_date,
        description=form.description.strip(),
        category=form.category,
        amount=signed_amount(form.category, cents),
        payment_method=form.payment_method,
        status=form.status,
        reference=reference,
        linked_task_id=linked_task_id,
        details=details,
        attachments=attachments,
    )
    logger.debug(
        "transaction_built | id=%s | project_id=%s | amount=%s | linked_task_id=%s",
        transaction.id,
        project_id,
        transaction.amount,
        linked_task_id,
    )
    return transaction
