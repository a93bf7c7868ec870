"""
Data Models Package

This package contains all Pydantic models used by the transaction composer.
"""

from xpense.models.transaction import (
    LOAN_DIRECTION,
    LOAN_SETTLEMENT_TYPES,
    LOAN_TYPES,
    Account,
    Attachment,
    Contact,
    ContactAccount,
    EntryType,
    ExpenseCategory,
    IncomeSource,
    LoanDirection,
    LoanRecord,
    ReferenceData,
    SplitLine,
    TransactionDraft,
    TransactionMode,
    ValidationIssue,
    ValidationResult,
    entry_types_for,
    mode_for,
    parse_amount,
)
from xpense.models.payload import (
    INTERNAL_TRANSFER_ENDPOINT,
    TRANSACTIONS_ENDPOINT,
    AccountAllocation,
    AssembledRequest,
    InternalTransferPayload,
    SplitPayload,
    SubmissionOutcome,
    TransactionPayload,
)
from xpense.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "LOAN_DIRECTION",
    "LOAN_SETTLEMENT_TYPES",
    "LOAN_TYPES",
    "Account",
    "Attachment",
    "Contact",
    "ContactAccount",
    "EntryType",
    "ExpenseCategory",
    "IncomeSource",
    "LoanDirection",
    "LoanRecord",
    "ReferenceData",
    "SplitLine",
    "TransactionDraft",
    "TransactionMode",
    "ValidationIssue",
    "ValidationResult",
    "entry_types_for",
    "mode_for",
    "parse_amount",
    # Payload models
    "INTERNAL_TRANSFER_ENDPOINT",
    "TRANSACTIONS_ENDPOINT",
    "AccountAllocation",
    "AssembledRequest",
    "InternalTransferPayload",
    "SplitPayload",
    "SubmissionOutcome",
    "TransactionPayload",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
