"""
models.py - Data models for the construction project ledger.

Every module communicates through these models:

    ledger.py        TransactionForm  ->  Transaction
    projects.py      TaskForm         ->  Task
    reconcile.py     Task + [Transaction] -> ReconciliationResult
    documents.py     upload bytes     ->  ProjectDocument
    financials.py    Project + tasks + ledger -> ProjectFinancials

Money is always stored as integer minor units (cents). Transaction
amounts are signed: positive is money received from the owner, negative
is money paid out. Forms carry the raw text a user typed; the ledger and
project service parse it into cents.

Schema relationships:
    Project  --owns-->       Task, Transaction, ProjectDocument
    Task     --linked by-->  Transaction.linked_task_id
    TransactionDetails --used by--> Transaction.details
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    """Lifecycle of a contracted task. Transitions only move forward."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"


class TransactionCategory(str, Enum):
    """Ledger categories. PAYMENT is owner money coming in; the rest are costs."""

    PAYMENT = "Payment"
    MATERIALS = "Materials"
    LABOR = "Labor"
    EQUIPMENT = "Equipment"
    OTHER = "Other"


class PaymentMethod(str, Enum):
    BANK = "Bank"
    CREDIT = "Credit"
    CHECK = "Check"
    CASH = "Cash"
    ZELLE = "Zelle"
    VENMO = "Venmo"


DIGITAL_PAYMENT_METHODS = {PaymentMethod.ZELLE, PaymentMethod.VENMO}


class ProjectStatus(str, Enum):
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class DocumentMainCategory(str, Enum):
    OWNER = "owner"
    CONSTRUCTION = "construction"
    CONTRACTOR = "contractor"


# ----------------------------------------------------------------------
# Transactions
# ----------------------------------------------------------------------


class CreditCardDetails(BaseModel):
    type: str
    last_four: str = Field(default="", max_length=4)


class CheckDetails(BaseModel):
    bank_name: str
    check_number: str


class DigitalPaymentDetails(BaseModel):
    platform: str
    username: str


class PaymentDetails(BaseModel):
    """Method-specific payment data. At most one field is set."""

    credit_card: Optional[CreditCardDetails] = None
    check: Optional[CheckDetails] = None
    digital: Optional[DigitalPaymentDetails] = None


class TransactionDetails(BaseModel):
    """Snapshot of the linked task and payment method at the time of entry.

    Captured when the transaction is created so the ledger still reads
    correctly if the task's contractor details change later.
    """

    task_id: Optional[str] = None
    task_name: Optional[str] = None
    contractor_name: Optional[str] = None
    company_name: Optional[str] = None
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)


class Attachment(BaseModel):
    id: str
    name: str
    type: str = ""
    size: str = Field(..., description="Display size, e.g. '1.25 MB'.")
    url: str = ""
    uploaded_at: str


class Transaction(BaseModel):
    """One immutable ledger entry for a project.

    Transactions are create-once: the store only ever appends them and
    nothing in the system rewrites one after the fact.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique id, e.g. 'TRX-1718900000000-k3j9x0a1b'.")
    project_id: str
    date: str = Field(..., description="ISO YYYY-MM-DD date of the payment.")
    description: str = ""
    category: TransactionCategory = TransactionCategory.PAYMENT
    amount: int = Field(
        ...,
        description=(
            "Signed amount in cents. Positive = received from the owner, "
            "negative = paid out. Reconciliation only looks at the magnitude."
        ),
    )
    payment_method: PaymentMethod = PaymentMethod.BANK
    status: TransactionStatus = TransactionStatus.COMPLETED
    reference: str = Field(..., description="Human-facing reference, e.g. 'TRX-000123-042'.")
    linked_task_id: Optional[str] = None
    details: Optional[TransactionDetails] = None
    attachments: list[Attachment] = Field(default_factory=list)

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_expense(self) -> bool:
        return self.amount < 0


class AttachmentUpload(BaseModel):
    """Metadata of a file attached to a transaction form."""

    name: str
    content_type: str = ""
    size_bytes: int = Field(default=0, ge=0)
    url: str = ""


class TransactionForm(BaseModel):
    """Raw transaction input as submitted by a user."""

    model_config = ConfigDict(extra="ignore")

    date: Optional[str] = None
    description: str = ""
    category: TransactionCategory = TransactionCategory.PAYMENT
    amount: Union[str, int, float] = Field(..., description="Amount as typed, e.g. '40,000.00'. Must be > 0.")
    payment_method: PaymentMethod = PaymentMethod.BANK
    credit_card_type: str = ""
    last_four_digits: str = ""
    bank_name: str = ""
    check_number: str = ""
    digital_payment_username: str = ""
    status: TransactionStatus = TransactionStatus.COMPLETED
    reference: Optional[str] = Field(
        default=None,
        description="Leave empty to have a reference generated.",
    )
    linked_task_id: Optional[str] = None
    attachments: list[AttachmentUpload] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Tasks and projects
# ----------------------------------------------------------------------


class Task(BaseModel):
    """A unit of contracted construction work tracked to completion via payments.

    status and progress are derived fields: reconciliation is the only
    thing that writes them after creation.
    """

    id: str
    project_id: str
    name: str
    category: str
    status: TaskStatus = TaskStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    contract_value: int = Field(
        ...,
        gt=0,
        description="Fixed contract value in cents. Always positive.",
    )
    estimated_cost: Optional[int] = Field(default=None, ge=0)
    contractor_name: str = ""
    company_name: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    start_date: str = ""
    duration: str = "1"
    duration_unit: str = "Months"


class TaskForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str
    contract_value: Union[str, int, float]
    estimated_cost: Optional[Union[str, int, float]] = None
    contractor_name: str = ""
    company_name: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    start_date: str = ""
    duration: str = "1"
    duration_unit: str = "Months"


class NewProject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    client: str = Field(..., min_length=1)
    budget: int = Field(
        ...,
        ge=0,
        description=(
            "Total project budget in integer cents, unlike TaskForm.contract_value "
            "and TransactionForm.amount, which take dollar text."
        ),
    )
    deadline: str
    status: ProjectStatus = ProjectStatus.IN_PROGRESS
    team: Optional[int] = Field(default=None, ge=0)


class Project(NewProject):
    id: str
    owner_id: str
    created_at: str
    updated_at: str


class ProjectDocument(BaseModel):
    id: str
    project_id: str
    name: str
    main_category: DocumentMainCategory
    sub_category: str
    description: str = ""
    size: str
    uploaded_by: str
    uploaded_date: str
    url: str


# ----------------------------------------------------------------------
# Derived outputs
# ----------------------------------------------------------------------


class ReconciliationResult(BaseModel):
    """Outcome of reconciling one task against its linked transactions."""

    task_id: str
    status: TaskStatus
    progress: int = Field(..., ge=0, le=100)
    total_paid: int = Field(..., ge=0, description="Sum of |amount| in cents.")
    remaining_balance: int = Field(..., ge=0)
    payment_progress: float = Field(
        ...,
        ge=0,
        description="Unclamped paid/contract percentage. May exceed 100.",
    )
    changed: bool = Field(
        default=False,
        description="True when status or progress differ from the input task.",
    )


class TaskFinancials(BaseModel):
    task_id: str
    name: str
    contract_value: int
    total_paid: int
    remaining_balance: int
    status: TaskStatus
    progress: int


class ProjectFinancials(BaseModel):
    project_id: str
    budget: int
    received: int
    spent: int
    pending_total: int
    outstanding: int
    net: int
    received_pct: float
    by_payment_method: dict[str, int] = Field(default_factory=dict)
    recent_transactions: list[Transaction] = Field(default_factory=list)
    tasks: list[TaskFinancials] = Field(default_factory=list)
