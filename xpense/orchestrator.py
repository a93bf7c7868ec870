"""
Transaction Composer Flow

This module ties together drafts, split lines, validation, payload
assembly and the API client into the "new transaction" flow:

1. Start -> fresh draft (first account preselected)
2. Edit -> every change goes through the draft/split functions
3. Validate -> after every change, one predicate for every control
4. Submit -> assemble, POST once, report the outcome
5. Reset on success / keep the draft on failure

DESIGN DECISION: The flow owns the in-flight flag. While a submission is
outstanding every further submit() is refused without touching the API,
so a double click cannot book a transaction twice.
"""

import json
from typing import Any, Optional
from uuid import UUID

from xpense.audit import AuditLogger, create_correlation_id
from xpense.composer import (
    SplitNotSupportedError,
    assemble,
    change_entry_type,
    change_mode,
    cleared_fields,
    create_split_line,
    new_draft,
    remove_split_line,
    rescope_split_line,
    set_field,
    update_split_line,
)
from xpense.models.payload import AssembledRequest, SubmissionOutcome
from xpense.models.transaction import (
    ContactAccount,
    EntryType,
    LoanRecord,
    ReferenceData,
    SplitLine,
    TransactionDraft,
    TransactionMode,
    ValidationResult,
)
from xpense.services.api import (
    APIError,
    HttpXpenseAPI,
    XpenseAPIInterface,
    get_error_message,
)
from xpense.services.api.errors import GENERIC_MESSAGE
from xpense.validation import TransactionValidator


SUBMITTED_MESSAGE = "Transaction saved."
TRANSFER_SUBMITTED_MESSAGE = "Transfer saved."
IN_FLIGHT_MESSAGE = "Please wait, the transaction is still being saved."


class TransactionComposerFlow:
    """
    State and actions of the "new transaction" form.

    The UI reads `draft`, `split_enabled`, `split_lines` and `can_submit`
    and calls the action methods; it never edits the state directly.
    """

    def __init__(
        self,
        api: XpenseAPIInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._api = api
        self._audit_logger = audit_logger or AuditLogger()

        self.reference = ReferenceData()
        self.draft: TransactionDraft = new_draft()
        self.split_enabled = False
        self.split_lines: list[SplitLine] = []
        self.is_submitting = False
        self.correlation_id: UUID = create_correlation_id()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, mode: TransactionMode = TransactionMode.STANDARD, **fields: Any) -> TransactionDraft:
        """
        Begin a new draft, discarding the current one.

        The first account is preselected when none is given.
        """
        if "account" not in fields and self.reference.accounts:
            fields["account"] = self.reference.accounts[0].id

        self.draft = new_draft(mode=mode, **fields)
        self.split_enabled = False
        self.split_lines = []
        self.correlation_id = create_correlation_id()
        self._audit_logger.log_draft_started(self.draft.mode.value, self.correlation_id)
        return self.draft

    def cancel(self) -> TransactionDraft:
        """Discard the draft and start over in the same mode."""
        self._audit_logger.log_draft_discarded(self.correlation_id)
        return self.start(mode=self.draft.mode)

    async def load_reference_data(self) -> ReferenceData:
        """
        Refresh lookup tables from the API.

        Raises:
            APIError: If any lookup fails (the previous tables are kept)
        """
        try:
            reference = await self._api.load_reference_data()
        except APIError as e:
            self._audit_logger.log_external_service_error(
                service="xpense-api",
                error_message=str(e),
                correlation_id=self.correlation_id,
            )
            raise

        self.reference = reference
        self._audit_logger.log_reference_data_loaded({
            "accounts": len(reference.accounts),
            "contacts": len(reference.contacts),
            "contact_accounts": len(reference.contact_accounts),
            "loans": len(reference.loans),
            "expense_categories": len(reference.expense_categories),
            "income_sources": len(reference.income_sources),
        })
        return reference

    # ------------------------------------------------------------------
    # Draft edits
    # ------------------------------------------------------------------

    def change_mode(self, mode: TransactionMode) -> TransactionDraft:
        """Switch mode; transfers can't be split, so split mode is dropped."""
        before = self.draft
        self.draft = change_mode(before, mode)

        if self.draft.mode == before.mode:
            return self.draft

        if self.draft.mode == TransactionMode.TRANSFER:
            self.split_enabled = False
        # Lines were prefilled for the old mode
        self.split_lines = []

        self._audit_logger.log_mode_changed(
            old_mode=before.mode.value,
            new_mode=self.draft.mode.value,
            cleared_fields=cleared_fields(before, self.draft),
            correlation_id=self.correlation_id,
        )
        return self.draft

    def change_entry_type(self, entry_type: EntryType) -> TransactionDraft:
        """Switch entry type; STANDARD split lines follow the draft's type."""
        before = self.draft
        self.draft = change_entry_type(before, entry_type)

        if self.draft.entry_type == before.entry_type:
            return self.draft

        rescoped = 0
        if self.split_enabled and self.draft.mode == TransactionMode.STANDARD:
            self.split_lines = [
                rescope_split_line(line, self.draft.entry_type) for line in self.split_lines
            ]
            rescoped = len(self.split_lines)

        self._audit_logger.log_entry_type_changed(
            old_type=before.entry_type.value,
            new_type=self.draft.entry_type.value,
            cleared_fields=cleared_fields(before, self.draft),
            rescoped_lines=rescoped,
            correlation_id=self.correlation_id,
        )
        return self.draft

    def set_field(self, field: str, value: Any) -> TransactionDraft:
        if field == "mode":
            return self.change_mode(value)
        if field == "entry_type":
            return self.change_entry_type(value)
        self.draft = set_field(self.draft, field, value)
        return self.draft

    # ------------------------------------------------------------------
    # Split editor
    # ------------------------------------------------------------------

    def toggle_split(self, enabled: bool) -> None:
        """
        Turn the split editor on or off.

        Raises:
            SplitNotSupportedError: When enabling it for a transfer
        """
        if enabled and self.draft.mode == TransactionMode.TRANSFER:
            raise SplitNotSupportedError("Internal transfers cannot be split")
        if enabled == self.split_enabled:
            return
        self.split_enabled = enabled
        self._audit_logger.log_split_toggled(enabled, len(self.split_lines), self.correlation_id)

    def add_split_line(self) -> SplitLine:
        line = create_split_line(self.draft)
        self.split_lines = [*self.split_lines, line]
        return line

    def update_split_line(self, index: int, field: str, value: Any) -> SplitLine:
        if not 0 <= index < len(self.split_lines):
            raise IndexError(f"No split line at index {index}")
        line = update_split_line(self.split_lines[index], field, value)
        self.split_lines = [
            line if i == index else existing
            for i, existing in enumerate(self.split_lines)
        ]
        return line

    def remove_split_line(self, index: int) -> None:
        self.split_lines = remove_split_line(self.split_lines, index)

    def apply_split_config(self) -> bool:
        """Whether the split editor's "Apply" control is enabled."""
        return self.validation().is_valid

    # ------------------------------------------------------------------
    # Validation & choices
    # ------------------------------------------------------------------

    def validation(self) -> ValidationResult:
        """The single eligibility check behind every submit-type control."""
        validator = TransactionValidator(self.reference)
        return validator.validate(
            self.draft.mode,
            self.draft,
            self.split_enabled,
            self.split_lines,
        )

    @property
    def can_submit(self) -> bool:
        return not self.is_submitting and self.validation().is_valid

    def validation_summary(self) -> str:
        return TransactionValidator(self.reference).get_user_friendly_summary(self.validation())

    def contact_account_choices(self) -> list[ContactAccount]:
        return self.reference.contact_accounts_for(self.draft.contact)

    def loan_choices(self, entry_type: Optional[EntryType] = None) -> list[LoanRecord]:
        """Loan records selectable for the draft (or for a split line's type)."""
        return self.reference.eligible_loan_records(
            self.draft.contact,
            entry_type or self.draft.entry_type,
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _count_splits(self, request: AssembledRequest) -> tuple[int, int]:
        """(accounts, splits) in a transactions/ request; zeros for transfers."""
        if request.is_multipart:
            accounts = json.loads(request.data["accounts"])
        elif request.json_body and "accounts" in request.json_body:
            accounts = request.json_body["accounts"]
        else:
            return 0, 0
        return len(accounts), sum(len(a["splits"]) for a in accounts)

    async def submit(self) -> SubmissionOutcome:
        """
        Validate, assemble and POST the draft.

        Never raises. On success the draft is reset; on failure it is kept
        so the user can correct it and try again.
        """
        correlation_id = self.correlation_id

        if self.is_submitting:
            self._audit_logger.log_duplicate_submission(correlation_id)
            return SubmissionOutcome(success=False, message=IN_FLIGHT_MESSAGE)

        result = self.validation()
        if not result.is_valid:
            self._audit_logger.log_submission_blocked(
                [
                    {"field": i.field, "type": i.issue_type, "line": i.line_index}
                    for i in result.issues if i.severity == "error"
                ],
                correlation_id,
            )
            return SubmissionOutcome(
                success=False,
                message=TransactionValidator(self.reference).get_user_friendly_summary(result),
                issues=result.issues,
            )

        request = assemble(self.draft, self.split_enabled, self.split_lines)
        account_count, split_count = self._count_splits(request)

        self.is_submitting = True
        try:
            self._audit_logger.log_submission_started(
                endpoint=request.endpoint,
                account_count=account_count,
                split_count=split_count,
                multipart=request.is_multipart,
                correlation_id=correlation_id,
            )
            response = await self._api.submit(request)
        except APIError as e:
            message = get_error_message(e)
            self._audit_logger.log_submission_failed(
                endpoint=request.endpoint,
                status_code=e.status_code,
                error_message=message,
                correlation_id=correlation_id,
            )
            return SubmissionOutcome(success=False, message=message, status_code=e.status_code)
        except Exception as e:
            # Unexpected failures still end in a visible message
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return SubmissionOutcome(success=False, message=GENERIC_MESSAGE)
        finally:
            self.is_submitting = False

        self._audit_logger.log_submission_succeeded(request.endpoint, correlation_id)

        transfer = self.draft.mode == TransactionMode.TRANSFER
        self.start(mode=self.draft.mode, account=self.draft.account)

        return SubmissionOutcome(
            success=True,
            message=TRANSFER_SUBMITTED_MESSAGE if transfer else SUBMITTED_MESSAGE,
            response=response,
        )


def create_app_components(token: Optional[str] = None) -> TransactionComposerFlow:
    """
    Factory function to create the composer with its collaborators.

    Args:
        token: Session token for the API (falls back to configuration)

    Returns:
        A ready TransactionComposerFlow (reference data not yet loaded)
    """
    api = HttpXpenseAPI(token=token)
    return TransactionComposerFlow(api=api, audit_logger=AuditLogger())
