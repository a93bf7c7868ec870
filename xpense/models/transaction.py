"""
Core Data Models for the Transaction Composer

These models describe the in-memory state of a transaction being composed
and the reference data its form selects are populated from.

DESIGN DECISION: Drafts and split lines are immutable Pydantic models.
Every edit produces a new object, so the UI can re-validate after each
change without worrying about a half-applied mutation.

All identifiers are normalized to strings. The external API hands out
integer ids, but form widgets hand back strings; normalizing once here
keeps comparisons (e.g. same-account transfer) reliable.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from xpense.config import get_settings


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionMode(str, Enum):
    """
    Which form the composer is showing.

    The mode decides which entry types and which fields are legal.
    """
    STANDARD = "STANDARD"
    LOAN = "LOAN"
    TRANSFER = "TRANSFER"


class EntryType(str, Enum):
    """
    Kind of ledger entry a transaction (or split) records.

    NOTE: LOAN_REPAYMENT travels as "REPAYMENT", which is the value the
    external API stores.
    """
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"
    LOAN_REPAYMENT = "REPAYMENT"          # I pay back money I borrowed
    REIMBURSEMENT = "REIMBURSEMENT"       # They pay back money I lent
    LOAN_TAKEN = "LOAN_TAKEN"             # I borrow (more) money
    MONEY_LENT = "MONEY_LENT"             # I lend new money
    TRANSFER = "TRANSFER"


class LoanDirection(str, Enum):
    """Direction of a loan record, as stored by the API."""
    TAKEN = "TAKEN"   # Owed by me
    LENT = "LENT"     # Owed to me


# Order matters: the first entry type is the default for the mode.
MODE_ENTRY_TYPES: dict[TransactionMode, tuple[EntryType, ...]] = {
    TransactionMode.STANDARD: (EntryType.EXPENSE, EntryType.INCOME),
    TransactionMode.LOAN: (
        EntryType.LOAN_TAKEN,
        EntryType.MONEY_LENT,
        EntryType.LOAN_REPAYMENT,
        EntryType.REIMBURSEMENT,
    ),
    TransactionMode.TRANSFER: (EntryType.TRANSFER,),
}

LOAN_TYPES = frozenset(MODE_ENTRY_TYPES[TransactionMode.LOAN])

# Entry types that must reference an existing loan record
LOAN_SETTLEMENT_TYPES = frozenset({EntryType.LOAN_REPAYMENT, EntryType.REIMBURSEMENT})

# Direction of the loan records a loan entry may reference.
# Settlements require one; new borrowing or lending may add to one.
LOAN_DIRECTION: dict[EntryType, LoanDirection] = {
    EntryType.LOAN_REPAYMENT: LoanDirection.TAKEN,
    EntryType.LOAN_TAKEN: LoanDirection.TAKEN,
    EntryType.REIMBURSEMENT: LoanDirection.LENT,
    EntryType.MONEY_LENT: LoanDirection.LENT,
}

ENTRY_TYPE_LABELS: dict[EntryType, str] = {
    EntryType.EXPENSE: "Expense",
    EntryType.INCOME: "Income",
    EntryType.LOAN_REPAYMENT: "Loan Repayment (I pay back)",
    EntryType.REIMBURSEMENT: "Lent Money Back (They pay me)",
    EntryType.LOAN_TAKEN: "Add to Loan Taken",
    EntryType.MONEY_LENT: "Lent New Money",
    EntryType.TRANSFER: "Internal Transfer",
}


def entry_types_for(mode: TransactionMode) -> tuple[EntryType, ...]:
    """Legal entry types for a mode, default first."""
    return MODE_ENTRY_TYPES[TransactionMode(mode)]


def mode_for(entry_type: EntryType) -> TransactionMode:
    """The one mode an entry type belongs to."""
    entry_type = EntryType(entry_type)
    for mode, types in MODE_ENTRY_TYPES.items():
        if entry_type in types:
            return mode
    raise ValueError(f"Entry type {entry_type} belongs to no mode")


DATE_FORMAT = "%Y-%m-%dT%H:%M"


def current_timestamp() -> str:
    """Now, in the format the date-time input produces."""
    return datetime.now().strftime(DATE_FORMAT)


def _normalize_id(value: Any) -> Optional[str]:
    """Accept ints or strings as ids; blank means unset."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("Identifier cannot be a boolean")
    text = str(value).strip()
    return text or None


def _normalize_amount(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        # Avoid binary float noise like 0.1 -> 0.1000000000000000055
        return str(Decimal(repr(value)))
    return str(value).strip()


def parse_amount(amount: str) -> Optional[Decimal]:
    """
    Parse a typed amount.

    Returns None if the text is not a finite decimal.
    """
    if not amount:
        return None
    try:
        value = Decimal(amount)
    except ArithmeticError:
        return None
    if not value.is_finite():
        return None
    return value


# =============================================================================
# ATTACHMENT
# =============================================================================

class Attachment(BaseModel):
    """A receipt image attached to a transaction."""
    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1, max_length=255)
    content: bytes = Field(..., description="Raw file bytes")
    content_type: str = Field(default="image/jpeg")

    @field_validator('content_type')
    @classmethod
    def validate_content_type(cls, v: str) -> str:
        """Only allow configured image types."""
        allowed = get_settings().app.allowed_attachment_types_list
        if v.lower() not in allowed:
            raise ValueError(f"Unsupported attachment type: {v}. Allowed: {allowed}")
        return v.lower()

    @field_validator('content')
    @classmethod
    def validate_size(cls, v: bytes) -> bytes:
        """Reject empty or oversized files."""
        if not v:
            raise ValueError("Attachment is empty")
        max_bytes = get_settings().app.max_attachment_size_bytes
        if len(v) > max_bytes:
            raise ValueError(
                f"Attachment is {len(v)} bytes, larger than the {max_bytes} byte limit"
            )
        return v


# =============================================================================
# DRAFT & SPLIT LINE
# =============================================================================

ID_FIELDS = (
    "account",
    "to_account",
    "contact",
    "contact_account",
    "loan_record",
    "expense_category",
    "income_source",
)


class TransactionDraft(BaseModel):
    """
    The simple (non-split) form state of a transaction being composed.

    CRITICAL: Do not construct cross-mode states by hand and submit them.
    Go through xpense.composer.draft so that fields which are not legal for
    the current mode/entry type get cleared.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    mode: TransactionMode = TransactionMode.STANDARD
    entry_type: EntryType = EntryType.EXPENSE
    date: str = Field(
        default_factory=current_timestamp,
        description="Transaction timestamp (YYYY-MM-DDTHH:MM)"
    )

    account: Optional[str] = None
    to_account: Optional[str] = None
    amount: str = Field(default="", description="Amount as typed")
    note: str = ""

    # Loan mode
    contact: Optional[str] = None
    contact_account: Optional[str] = None
    loan_record: Optional[str] = None

    # Standard mode
    expense_category: Optional[str] = None
    income_source: Optional[str] = None

    attachment: Optional[Attachment] = None

    @field_validator(*ID_FIELDS, mode='before')
    @classmethod
    def normalize_ids(cls, v: Any) -> Optional[str]:
        return _normalize_id(v)

    @field_validator('amount', mode='before')
    @classmethod
    def normalize_amount(cls, v: Any) -> str:
        return _normalize_amount(v)

    @field_validator('note', mode='before')
    @classmethod
    def normalize_note(cls, v: Any) -> str:
        return "" if v is None else v

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, datetime):
            return v.strftime(DATE_FORMAT)
        return v

    @property
    def parsed_amount(self) -> Optional[Decimal]:
        return parse_amount(self.amount)


class SplitLine(BaseModel):
    """One allocation row of a split transaction."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    account: Optional[str] = None
    amount: str = ""
    type: EntryType = EntryType.EXPENSE
    note: str = ""
    expense_category: Optional[str] = None
    income_source: Optional[str] = None
    loan_record: Optional[str] = None

    @field_validator('account', 'expense_category', 'income_source', 'loan_record', mode='before')
    @classmethod
    def normalize_ids(cls, v: Any) -> Optional[str]:
        return _normalize_id(v)

    @field_validator('amount', mode='before')
    @classmethod
    def normalize_amount(cls, v: Any) -> str:
        return _normalize_amount(v)

    @field_validator('note', mode='before')
    @classmethod
    def normalize_note(cls, v: Any) -> str:
        return "" if v is None else v

    @property
    def parsed_amount(self) -> Optional[Decimal]:
        return parse_amount(self.amount)


# =============================================================================
# REFERENCE DATA - read-only lookup tables from the API
# =============================================================================

class _Reference(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str

    @field_validator('id', mode='before')
    @classmethod
    def normalize_id(cls, v: Any) -> str:
        normalized = _normalize_id(v)
        if normalized is None:
            raise ValueError("Reference record has no id")
        return normalized


class Account(_Reference):
    """One of the user's own accounts (bank, wallet, cash)."""
    bank_name: str = ""
    account_name: str = ""
    balance: Decimal = Decimal("0")

    @property
    def label(self) -> str:
        return f"{self.bank_name} - {self.account_name}".strip(" -")


class Contact(_Reference):
    first_name: str = ""
    last_name: str = ""

    @property
    def label(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ContactAccount(_Reference):
    """An account owned by a contact (the counterparty of loan entries)."""
    contact: Optional[str] = None
    bank_name: str = ""
    account_name: str = ""
    account_number: str = ""

    @field_validator('contact', mode='before')
    @classmethod
    def normalize_contact(cls, v: Any) -> Optional[str]:
        return _normalize_id(v)

    @property
    def label(self) -> str:
        return f"{self.bank_name} - {self.account_name} ({self.account_number})"


class LoanRecord(_Reference):
    """A tracked debt between the user and a contact."""
    contact: Optional[str] = None
    person_name: str = ""
    type: LoanDirection
    total_amount: Decimal = Decimal("0")
    remaining_amount: Decimal = Decimal("0")
    is_closed: bool = False
    description: str = ""

    @field_validator('contact', mode='before')
    @classmethod
    def normalize_contact(cls, v: Any) -> Optional[str]:
        return _normalize_id(v)

    @field_validator('description', 'person_name', mode='before')
    @classmethod
    def blank_if_none(cls, v: Any) -> str:
        return "" if v is None else v

    @property
    def label(self) -> str:
        return f"{self.person_name or 'Unknown'} - remaining {self.remaining_amount}"


class ExpenseCategory(_Reference):
    name: str
    description: str = ""

    @field_validator('description', mode='before')
    @classmethod
    def blank_if_none(cls, v: Any) -> str:
        return "" if v is None else v


class IncomeSource(_Reference):
    name: str
    description: str = ""

    @field_validator('description', mode='before')
    @classmethod
    def blank_if_none(cls, v: Any) -> str:
        return "" if v is None else v


class ReferenceData(BaseModel):
    """
    Everything the composer's selects are populated from.

    Refreshed on page load; never mutated by the composer.
    """
    model_config = ConfigDict(frozen=True)

    accounts: list[Account] = Field(default_factory=list)
    contacts: list[Contact] = Field(default_factory=list)
    contact_accounts: list[ContactAccount] = Field(default_factory=list)
    loans: list[LoanRecord] = Field(default_factory=list)
    expense_categories: list[ExpenseCategory] = Field(default_factory=list)
    income_sources: list[IncomeSource] = Field(default_factory=list)

    def contact_accounts_for(self, contact: Optional[str]) -> list[ContactAccount]:
        """Accounts belonging to the given contact."""
        contact = _normalize_id(contact)
        if contact is None:
            return []
        return [acc for acc in self.contact_accounts if acc.contact == contact]

    def eligible_loan_records(
        self,
        contact: Optional[str],
        entry_type: EntryType,
    ) -> list[LoanRecord]:
        """
        Loan records a loan entry may reference.

        Only open records of the selected contact, in the entry type's
        direction: TAKEN for repayments and new borrowing, LENT for
        reimbursements and new lending.
        """
        contact = _normalize_id(contact)
        direction = LOAN_DIRECTION.get(EntryType(entry_type))
        if contact is None or direction is None:
            return []
        return [
            loan for loan in self.loans
            if loan.contact == contact
            and loan.type == direction
            and not loan.is_closed
        ]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_allowed')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    line_index: Optional[int] = Field(
        default=None,
        ge=0,
        description="Split line the issue belongs to, if any"
    )


class ValidationResult(BaseModel):
    """Result of evaluating whether a draft can be submitted."""

    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[ValidationIssue]:
        """Error-level issues for one field."""
        return [
            issue for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
