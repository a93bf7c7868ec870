"""
Tests for the transaction validity evaluator.
"""

import pytest

from xpense.composer import change_mode, new_draft
from xpense.models.transaction import (
    Attachment,
    EntryType,
    SplitLine,
    TransactionDraft,
    TransactionMode,
)
from xpense.validation import TransactionValidator, is_submittable, validate


def _issue_fields(result):
    return [(i.field, i.issue_type, i.line_index) for i in result.issues if i.severity == "error"]


class TestTransferRules:
    """Tests for internal transfers."""

    def test_same_account_is_not_submittable(self):
        draft = new_draft(mode=TransactionMode.TRANSFER, account=1, to_account=1, amount="100")
        result = validate(TransactionMode.TRANSFER, draft)
        assert result.is_valid is False
        assert ("to_account", "invalid_value", None) in _issue_fields(result)

    def test_valid_transfer(self):
        draft = new_draft(mode=TransactionMode.TRANSFER, account=1, to_account=2, amount="100")
        assert is_submittable(TransactionMode.TRANSFER, draft)

    @pytest.mark.parametrize("account, to_account, amount, expected", [
        ("1", "2", "10", True),
        (None, "2", "10", False),
        ("1", None, "10", False),
        ("1", "1", "10", False),
        ("1", "2", "", False),
        ("1", "2", "0", False),
        ("1", "2", "-5", False),
        ("1", "2", "ten", False),
    ])
    def test_submittable_iff_fields_complete(self, account, to_account, amount, expected):
        draft = new_draft(
            mode=TransactionMode.TRANSFER,
            account=account,
            to_account=to_account,
            amount=amount,
            date="2024-01-01T10:00",
        )
        assert is_submittable(TransactionMode.TRANSFER, draft) is expected

    def test_split_is_ignored_for_transfers(self):
        draft = new_draft(mode=TransactionMode.TRANSFER, account=1, to_account=2, amount="100")
        assert is_submittable(TransactionMode.TRANSFER, draft, split_enabled=True, split_lines=[])

    def test_attachment_not_allowed(self):
        draft = TransactionDraft(
            mode=TransactionMode.TRANSFER,
            entry_type=EntryType.TRANSFER,
            account="1",
            to_account="2",
            amount="100",
            attachment=Attachment(filename="r.jpg", content=b"jpeg"),
        )
        result = validate(TransactionMode.TRANSFER, draft)
        assert ("attachment", "not_allowed", None) in _issue_fields(result)


class TestStandardRules:
    """Tests for income and expense entries."""

    def test_expense_example_is_submittable(self):
        draft = new_draft(
            mode=TransactionMode.STANDARD,
            entry_type=EntryType.EXPENSE,
            account=1,
            amount="500",
            expense_category=3,
            date="2024-01-01T10:00",
        )
        assert is_submittable(TransactionMode.STANDARD, draft)

    def test_expense_needs_category(self):
        draft = new_draft(account=1, amount="500")
        result = validate(TransactionMode.STANDARD, draft)
        assert _issue_fields(result) == [("expense_category", "missing", None)]

    def test_income_needs_source(self):
        draft = new_draft(entry_type=EntryType.INCOME, account=1, amount="500")
        result = validate(TransactionMode.STANDARD, draft)
        assert _issue_fields(result) == [("income_source", "missing", None)]

    def test_missing_date(self):
        draft = new_draft(account=1, amount="500", expense_category=3, date="")
        result = validate(TransactionMode.STANDARD, draft)
        assert ("date", "missing", None) in _issue_fields(result)

    def test_mode_argument_wins_over_draft(self):
        """An expense draft checked in TRANSFER mode fails on its entry type."""
        draft = new_draft(account=1, amount="500", expense_category=3)
        result = validate(TransactionMode.TRANSFER, draft)
        assert ("entry_type", "not_allowed", None) in _issue_fields(result)


class TestLoanRules:
    """Tests for loan entries."""

    def test_repayment_example(self, reference):
        draft = new_draft(
            mode=TransactionMode.LOAN,
            entry_type=EntryType.LOAN_REPAYMENT,
            contact=10,
            contact_account=20,
            account=1,
            amount="200",
        )
        assert not is_submittable(TransactionMode.LOAN, draft)

        completed = draft.model_copy(update={"loan_record": "30"})
        assert is_submittable(TransactionMode.LOAN, completed, reference=reference)

    def test_loan_taken_needs_no_record(self):
        draft = new_draft(
            mode=TransactionMode.LOAN,
            contact=10,
            contact_account=20,
            account=1,
            amount="1000",
        )
        assert is_submittable(TransactionMode.LOAN, draft)

    def test_counterparty_required(self):
        draft = new_draft(mode=TransactionMode.LOAN, account=1, amount="1000")
        fields = _issue_fields(validate(TransactionMode.LOAN, draft))
        assert ("contact", "missing", None) in fields
        assert ("contact_account", "missing", None) in fields

    def test_contact_account_of_other_contact(self, reference):
        draft = new_draft(
            mode=TransactionMode.LOAN,
            contact=10,
            contact_account=21,
            account=1,
            amount="1000",
        )
        assert is_submittable(TransactionMode.LOAN, draft)
        result = validate(TransactionMode.LOAN, draft, reference=reference)
        assert ("contact_account", "inconsistent", None) in _issue_fields(result)

    @pytest.mark.parametrize("loan_record", ["31", "32", "33", "999"])
    def test_repayment_loan_must_be_open_taken_loan_of_contact(self, reference, loan_record):
        draft = new_draft(
            mode=TransactionMode.LOAN,
            entry_type=EntryType.LOAN_REPAYMENT,
            contact=10,
            contact_account=20,
            loan_record=loan_record,
            account=1,
            amount="200",
        )
        result = validate(TransactionMode.LOAN, draft, reference=reference)
        assert ("loan_record", "inconsistent", None) in _issue_fields(result)

    def test_new_loan_record_must_match_direction(self, reference):
        draft = new_draft(
            mode=TransactionMode.LOAN,
            entry_type=EntryType.LOAN_TAKEN,
            contact=10,
            contact_account=20,
            loan_record="31",
            account=1,
            amount="1000",
        )
        result = validate(TransactionMode.LOAN, draft, reference=reference)
        assert ("loan_record", "inconsistent", None) in _issue_fields(result)

        linked = draft.model_copy(update={"loan_record": "30"})
        assert is_submittable(TransactionMode.LOAN, linked, reference=reference)


class TestSplitRules:
    """Tests for split mode."""

    def test_empty_split_is_not_submittable(self):
        draft = new_draft(account=1, amount="500", expense_category=3)
        assert is_submittable(TransactionMode.STANDARD, draft)
        assert not is_submittable(TransactionMode.STANDARD, draft, split_enabled=True, split_lines=[])

    def test_split_lines_replace_draft_fields(self):
        """In split mode the draft's own account/amount are not required."""
        draft = new_draft(account=None, amount="")
        lines = [
            SplitLine(account=1, amount="100", expense_category=3),
            SplitLine(account=2, amount="50", expense_category=4),
        ]
        assert is_submittable(TransactionMode.STANDARD, draft, split_enabled=True, split_lines=lines)

    def test_each_line_is_checked(self):
        draft = new_draft()
        lines = [
            SplitLine(account=1, amount="100", expense_category=3),
            SplitLine(account=None, amount="0"),
        ]
        fields = _issue_fields(validate(TransactionMode.STANDARD, draft, True, lines))
        assert ("account", "missing", 1) in fields
        assert ("amount", "invalid_value", 1) in fields
        assert ("expense_category", "missing", 1) in fields
        assert not any(index == 0 for _, _, index in fields)

    def test_loan_split_line_types(self):
        draft = new_draft(mode=TransactionMode.LOAN, contact=10, contact_account=20)
        lines = [
            SplitLine(account=1, amount="100", type=EntryType.LOAN_REPAYMENT),
            SplitLine(account=2, amount="100", type=EntryType.EXPENSE),
        ]
        fields = _issue_fields(validate(TransactionMode.LOAN, draft, True, lines))
        assert ("loan_record", "missing", 0) in fields
        assert ("type", "not_allowed", 1) in fields

    def test_total_mismatch_is_only_a_warning(self):
        draft = new_draft(amount="150")
        lines = [
            SplitLine(account=1, amount="100", expense_category=3),
            SplitLine(account=2, amount="40", expense_category=3),
        ]
        result = validate(TransactionMode.STANDARD, draft, True, lines)
        assert result.is_valid is True
        assert result.warnings == ["Split lines add up to 140, not 150"]

    def test_switch_to_loan_needs_counterparty(self):
        draft = change_mode(new_draft(account=1, amount="10", expense_category=3), TransactionMode.LOAN)
        assert not is_submittable(TransactionMode.LOAN, draft)


class TestSummary:
    """Tests for the user-facing summary."""

    def test_ready(self):
        validator = TransactionValidator()
        draft = new_draft(account=1, amount="500", expense_category=3)
        summary = validator.get_user_friendly_summary(validator.validate(TransactionMode.STANDARD, draft))
        assert summary == "✅ Ready to save."

    def test_lists_errors(self):
        validator = TransactionValidator()
        result = validator.validate(TransactionMode.STANDARD, new_draft())
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌ Please complete the following:")
        assert "Account is required" in summary
        assert "Amount is required" in summary
