"""
Transaction Validity Evaluator

DESIGN DECISION: There is exactly one answer to "can this be submitted?".
The submit control and the split editor's "Apply" control both call
is_submittable(); neither recomputes eligibility on its own.

Validation happens in three passes:

PASS 1 - BASIC:
- date present
- account present and amount a positive decimal
  (on the draft, or on every split line in split mode)

PASS 2 - MODE RULES:
- STANDARD: income needs an income source, expense needs a category
- LOAN: contact and contact account; repayment/reimbursement needs a loan record
- TRANSFER: destination account, different from the source, no attachment

PASS 3 - REFERENCE CHECKS (only when reference data is supplied):
- contact account belongs to the contact
- a selected loan record is an open record of the contact, in the
  direction of the entry type

IMPORTANT: Validation never fixes anything. It only reports.
"""

from decimal import Decimal
from typing import Optional, Sequence

from xpense.models.transaction import (
    LOAN_DIRECTION,
    LOAN_SETTLEMENT_TYPES,
    LOAN_TYPES,
    EntryType,
    ReferenceData,
    SplitLine,
    TransactionDraft,
    TransactionMode,
    ValidationIssue,
    ValidationResult,
    entry_types_for,
    parse_amount,
)


def _missing(field: str, label: str, line_index: Optional[int] = None) -> ValidationIssue:
    where = f" on split line {line_index + 1}" if line_index is not None else ""
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required{where}",
        line_index=line_index,
    )


class TransactionValidator:
    """
    Evaluates whether a draft (simple or split) can be submitted.

    Stateless apart from the optional reference data used for
    cross-checking ids.
    """

    def __init__(self, reference: Optional[ReferenceData] = None):
        """
        Initialize validator.

        Args:
            reference: Lookup tables for cross-checking ids.
                       If None, reference checks are skipped.
        """
        self._reference = reference

    def _validate_basic(
        self,
        account: Optional[str],
        amount: str,
        line_index: Optional[int] = None,
    ) -> list[ValidationIssue]:
        """Account and positive amount, for the draft or one split line."""
        issues = []

        if not account:
            issues.append(_missing("account", "Account", line_index))

        parsed = parse_amount(amount)
        if not amount:
            issues.append(_missing("amount", "Amount", line_index))
        elif parsed is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message=f"Amount '{amount}' is not a number",
                line_index=line_index,
            ))
        elif parsed <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                line_index=line_index,
            ))

        return issues

    def _validate_standard(
        self,
        entry_type: EntryType,
        expense_category: Optional[str],
        income_source: Optional[str],
        line_index: Optional[int] = None,
    ) -> list[ValidationIssue]:
        if entry_type == EntryType.INCOME:
            if not income_source:
                return [_missing("income_source", "Income source", line_index)]
        elif not expense_category:
            return [_missing("expense_category", "Expense category", line_index)]
        return []

    def _validate_loan_entry(
        self,
        entry_type: EntryType,
        loan_record: Optional[str],
        line_index: Optional[int] = None,
    ) -> list[ValidationIssue]:
        issues = []

        if entry_type not in LOAN_TYPES:
            issues.append(ValidationIssue(
                field="type",
                issue_type="not_allowed",
                message=f"{entry_type.name} is not a loan entry type",
                line_index=line_index,
            ))
        elif entry_type in LOAN_SETTLEMENT_TYPES and not loan_record:
            issues.append(_missing("loan_record", "Loan record", line_index))

        return issues

    def _validate_counterparty(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = []
        if not draft.contact:
            issues.append(_missing("contact", "Contact"))
        if not draft.contact_account:
            issues.append(_missing("contact_account", "Contact account"))
        return issues

    def _validate_transfer(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = self._validate_basic(draft.account, draft.amount)

        if not draft.to_account:
            issues.append(_missing("to_account", "Destination account"))
        elif draft.account and draft.account == draft.to_account:
            issues.append(ValidationIssue(
                field="to_account",
                issue_type="invalid_value",
                message="Cannot transfer to the same account",
            ))

        if draft.attachment is not None:
            issues.append(ValidationIssue(
                field="attachment",
                issue_type="not_allowed",
                message="Internal transfers cannot carry an attachment",
            ))

        return issues

    def _validate_simple(self, draft: TransactionDraft) -> list[ValidationIssue]:
        issues = self._validate_basic(draft.account, draft.amount)

        if draft.mode == TransactionMode.STANDARD:
            issues.extend(self._validate_standard(
                draft.entry_type, draft.expense_category, draft.income_source,
            ))
        else:
            issues.extend(self._validate_counterparty(draft))
            issues.extend(self._validate_loan_entry(draft.entry_type, draft.loan_record))

        return issues

    def _validate_split(
        self,
        draft: TransactionDraft,
        split_lines: Sequence[SplitLine],
    ) -> list[ValidationIssue]:
        if not split_lines:
            return [ValidationIssue(
                field="split_lines",
                issue_type="missing",
                message="Add at least one split line",
            )]

        issues = []
        if draft.mode == TransactionMode.LOAN:
            issues.extend(self._validate_counterparty(draft))

        for index, line in enumerate(split_lines):
            issues.extend(self._validate_basic(line.account, line.amount, index))

            if draft.mode == TransactionMode.STANDARD:
                # STANDARD splits share the draft's entry type
                issues.extend(self._validate_standard(
                    draft.entry_type, line.expense_category, line.income_source, index,
                ))
            else:
                issues.extend(self._validate_loan_entry(line.type, line.loan_record, index))

        return issues

    def _validate_references(
        self,
        draft: TransactionDraft,
        split_enabled: bool,
        split_lines: Sequence[SplitLine],
    ) -> list[ValidationIssue]:
        """Cross-check selected ids against the loaded lookup tables."""
        if self._reference is None or draft.mode != TransactionMode.LOAN:
            return []

        issues = []
        reference = self._reference

        if draft.contact and draft.contact_account:
            owned = {acc.id for acc in reference.contact_accounts_for(draft.contact)}
            if draft.contact_account not in owned:
                issues.append(ValidationIssue(
                    field="contact_account",
                    issue_type="inconsistent",
                    message="Contact account does not belong to the selected contact",
                ))

        if split_enabled:
            entries = [(line.type, line.loan_record, i) for i, line in enumerate(split_lines)]
        else:
            entries = [(draft.entry_type, draft.loan_record, None)]

        for entry_type, loan_record, line_index in entries:
            if not loan_record or entry_type not in LOAN_DIRECTION:
                continue
            eligible = {
                loan.id for loan in reference.eligible_loan_records(draft.contact, entry_type)
            }
            if loan_record not in eligible:
                issues.append(ValidationIssue(
                    field="loan_record",
                    issue_type="inconsistent",
                    message=(
                        "Loan record is not an open "
                        f"{LOAN_DIRECTION[entry_type].value.lower()} "
                        "loan of the selected contact"
                    ),
                    line_index=line_index,
                ))

        return issues

    def _split_total_warning(
        self,
        draft: TransactionDraft,
        split_lines: Sequence[SplitLine],
    ) -> list[ValidationIssue]:
        """Warn when the lines don't add up to the amount typed on the draft."""
        expected = draft.parsed_amount
        if expected is None or expected <= 0 or not split_lines:
            return []

        total = Decimal("0")
        for line in split_lines:
            amount = line.parsed_amount
            if amount is None:
                return []
            total += amount

        if total == expected:
            return []
        return [ValidationIssue(
            field="split_lines",
            issue_type="inconsistent",
            message=f"Split lines add up to {total}, not {expected}",
            severity="warning",
        )]

    def validate(
        self,
        mode: TransactionMode,
        draft: TransactionDraft,
        split_enabled: bool = False,
        split_lines: Sequence[SplitLine] = (),
    ) -> ValidationResult:
        """
        Run all checks.

        Args:
            mode: The composer's mode (authoritative over draft.mode)
            draft: The simple form state
            split_enabled: Whether the split editor is active
            split_lines: The split rows (ignored unless split_enabled)

        Returns:
            ValidationResult with all issues found
        """
        mode = TransactionMode(mode)
        if draft.mode != mode:
            draft = draft.model_copy(update={"mode": mode})

        issues: list[ValidationIssue] = []

        if draft.entry_type not in entry_types_for(mode):
            issues.append(ValidationIssue(
                field="entry_type",
                issue_type="not_allowed",
                message=f"{draft.entry_type.name} is not allowed in {mode.value} mode",
            ))

        if not draft.date:
            issues.append(_missing("date", "Date"))

        if mode == TransactionMode.TRANSFER:
            # Transfers are never split
            issues.extend(self._validate_transfer(draft))
        elif split_enabled:
            issues.extend(self._validate_split(draft, split_lines))
            issues.extend(self._split_total_warning(draft, split_lines))
        else:
            issues.extend(self._validate_simple(draft))

        if mode != TransactionMode.TRANSFER:
            issues.extend(self._validate_references(draft, split_enabled, split_lines))

        warnings = [issue.message for issue in issues if issue.severity == "warning"]
        is_valid = not any(issue.severity == "error" for issue in issues)

        return ValidationResult(
            is_valid=is_valid,
            issues=issues,
            warnings=warnings,
        )

    def is_submittable(
        self,
        mode: TransactionMode,
        draft: TransactionDraft,
        split_enabled: bool = False,
        split_lines: Sequence[SplitLine] = (),
    ) -> bool:
        return self.validate(mode, draft, split_enabled, split_lines).is_valid

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Summary shown next to a disabled submit button.
        """
        if result.is_valid and not result.warnings:
            return "✅ Ready to save."

        lines = []

        if not result.is_valid:
            lines.append("❌ Please complete the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)


def validate(
    mode: TransactionMode,
    draft: TransactionDraft,
    split_enabled: bool = False,
    split_lines: Sequence[SplitLine] = (),
    reference: Optional[ReferenceData] = None,
) -> ValidationResult:
    """Module-level shortcut for TransactionValidator(reference).validate(...)."""
    return TransactionValidator(reference).validate(mode, draft, split_enabled, split_lines)


def is_submittable(
    mode: TransactionMode,
    draft: TransactionDraft,
    split_enabled: bool = False,
    split_lines: Sequence[SplitLine] = (),
    reference: Optional[ReferenceData] = None,
) -> bool:
    """
    Whether the composer may submit.

    This is the only eligibility check; every control that enables or
    disables submission must use it.
    """
    return validate(mode, draft, split_enabled, split_lines, reference).is_valid
