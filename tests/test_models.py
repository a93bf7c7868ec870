"""
Tests for Xpense models

Test strategy:
1. Unit tests for individual components (models, reducers, validator, assembler)
2. Flow tests with an in-memory fake API
3. No real API calls in tests (httpx.MockTransport for the HTTP client)
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from xpense.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from xpense.models.transaction import (
    LOAN_SETTLEMENT_TYPES,
    LOAN_TYPES,
    Attachment,
    EntryType,
    SplitLine,
    TransactionDraft,
    TransactionMode,
    ValidationIssue,
    ValidationResult,
    entry_types_for,
    mode_for,
    parse_amount,
)


class TestEnums:
    """Tests for mode and entry type enums."""

    def test_entry_types_per_mode(self):
        """Each mode exposes its legal entry types, default first."""
        assert entry_types_for(TransactionMode.STANDARD) == (EntryType.EXPENSE, EntryType.INCOME)
        assert entry_types_for(TransactionMode.LOAN)[0] == EntryType.LOAN_TAKEN
        assert entry_types_for(TransactionMode.TRANSFER) == (EntryType.TRANSFER,)

    def test_every_entry_type_belongs_to_exactly_one_mode(self):
        """Mode membership is a partition of the entry types."""
        for entry_type in EntryType:
            owners = [m for m in TransactionMode if entry_type in entry_types_for(m)]
            assert owners == [mode_for(entry_type)]

    def test_loan_type_sets(self):
        assert LOAN_SETTLEMENT_TYPES == {EntryType.LOAN_REPAYMENT, EntryType.REIMBURSEMENT}
        assert LOAN_SETTLEMENT_TYPES < LOAN_TYPES
        assert EntryType.EXPENSE not in LOAN_TYPES

    def test_repayment_wire_value(self):
        """The API stores repayments as REPAYMENT."""
        assert EntryType.LOAN_REPAYMENT.value == "REPAYMENT"
        assert EntryType("REPAYMENT") is EntryType.LOAN_REPAYMENT


class TestTransactionDraft:
    """Tests for the draft model."""

    def test_ids_are_normalized_to_strings(self):
        """Integer ids from the API compare equal to form values."""
        draft = TransactionDraft(account=1, to_account="1", expense_category=3)
        assert draft.account == "1"
        assert draft.account == draft.to_account
        assert draft.expense_category == "3"

    def test_blank_ids_mean_unset(self):
        draft = TransactionDraft(account="", contact="  ")
        assert draft.account is None
        assert draft.contact is None

    def test_defaults(self):
        """A fresh draft is a standard expense dated now."""
        draft = TransactionDraft()
        assert draft.mode == TransactionMode.STANDARD
        assert draft.entry_type == EntryType.EXPENSE
        assert draft.amount == ""
        assert draft.note == ""
        assert len(draft.date) == len("2024-01-01T10:00")

    def test_float_amount_keeps_its_digits(self):
        draft = TransactionDraft(amount=0.1)
        assert draft.amount == "0.1"
        assert draft.parsed_amount == Decimal("0.1")

    def test_draft_is_immutable(self):
        draft = TransactionDraft()
        with pytest.raises(ValueError):
            draft.amount = "10"

    def test_datetime_date_is_formatted(self):
        from datetime import datetime

        draft = TransactionDraft(date=datetime(2024, 1, 1, 10, 0, 42))
        assert draft.date == "2024-01-01T10:00"


class TestParseAmount:
    """Tests for typed amount parsing."""

    @pytest.mark.parametrize("text, expected", [
        ("500", Decimal("500")),
        ("12.50", Decimal("12.50")),
        ("-3", Decimal("-3")),
    ])
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "1,000", "NaN", "Infinity"])
    def test_invalid(self, text):
        assert parse_amount(text) is None


class TestAttachment:
    """Tests for receipt attachments."""

    def test_accepts_image(self):
        attachment = Attachment(filename="receipt.png", content=b"\x89PNG", content_type="IMAGE/PNG")
        assert attachment.content_type == "image/png"

    def test_rejects_other_types(self):
        with pytest.raises(ValueError, match="Unsupported attachment type"):
            Attachment(filename="notes.pdf", content=b"%PDF", content_type="application/pdf")

    def test_rejects_empty_file(self):
        with pytest.raises(ValueError, match="empty"):
            Attachment(filename="receipt.jpg", content=b"")


class TestReferenceData:
    """Tests for lookup helpers."""

    def test_contact_accounts_for(self, reference):
        accounts = reference.contact_accounts_for(10)
        assert [a.id for a in accounts] == ["20"]
        assert reference.contact_accounts_for(None) == []

    def test_repayment_offers_open_taken_loans_of_contact(self, reference):
        loans = reference.eligible_loan_records("10", EntryType.LOAN_REPAYMENT)
        assert [loan.id for loan in loans] == ["30"]

    def test_reimbursement_offers_lent_loans(self, reference):
        loans = reference.eligible_loan_records("10", EntryType.REIMBURSEMENT)
        assert [loan.id for loan in loans] == ["31"]

    def test_no_loans_without_contact_or_for_other_types(self, reference):
        assert reference.eligible_loan_records(None, EntryType.LOAN_REPAYMENT) == []
        assert reference.eligible_loan_records("10", EntryType.EXPENSE) == []

    @pytest.mark.parametrize("entry_type, expected", [
        (EntryType.LOAN_TAKEN, ["30"]),
        (EntryType.MONEY_LENT, ["31"]),
    ])
    def test_new_loans_may_reference_open_record_of_same_direction(self, reference, entry_type, expected):
        records = reference.eligible_loan_records("10", entry_type)
        assert [loan.id for loan in records] == expected

    def test_split_line_defaults(self):
        line = SplitLine(account=2, amount=50)
        assert line.account == "2"
        assert line.amount == "50"
        assert line.type == EntryType.EXPENSE


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert len(result.errors_for("amount")) == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="split_lines",
                    issue_type="inconsistent",
                    message="Split lines add up to 100, not 150",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.DRAFT_STARTED,
            description="New transaction started",
        )
        assert event.severity == AuditSeverity.INFO

    def test_timestamp_is_utc_aware(self):
        event = AuditEvent(event_type=AuditEventType.DRAFT_STARTED, description="x")
        assert event.timestamp.utcoffset() == timedelta(0)

    def test_audit_event_to_log_dict(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.submission_failed(
            endpoint="transactions/",
            status_code=400,
            error_message="Amount too large",
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "submission_failed"
        assert log_dict["severity"] == "error"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"]["status_code"] == 400

    def test_mode_changed_records_cleared_fields(self):
        event = AuditEventBuilder.mode_changed("LOAN", "STANDARD", ["contact"], uuid4())
        assert event.details["cleared_fields"] == ["contact"]
        assert event.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
