"""
Transaction Draft Transitions

DESIGN DECISION: Every change to a draft goes through the functions in this
module. They return a new, fully clean draft: any field that is not legal
for the resulting mode/entry type is cleared here, in one place.

Without this, a contact picked in LOAN mode would survive a switch to
STANDARD mode and end up in the payload.

Legal fields:
- Always: date, account, amount, note
- Everything except TRANSFER: attachment
- STANDARD + EXPENSE: expense_category
- STANDARD + INCOME: income_source
- LOAN: contact, contact_account, loan_record
- TRANSFER: to_account
"""

from typing import Any

from xpense.models.transaction import (
    EntryType,
    TransactionDraft,
    TransactionMode,
    entry_types_for,
)


class ComposerError(Exception):
    """Base exception for invalid composer operations."""
    pass


class InvalidEntryTypeError(ComposerError):
    """Entry type is not legal for the draft's mode."""

    def __init__(self, entry_type: EntryType, mode: TransactionMode):
        self.entry_type = entry_type
        self.mode = mode
        super().__init__(
            f"Entry type {entry_type.name} is not allowed in {mode.value} mode"
        )


class FieldNotAllowedError(ComposerError):
    """Field cannot be set for the current mode/entry type."""

    def __init__(self, field: str, mode: TransactionMode, entry_type: EntryType):
        self.field = field
        super().__init__(
            f"Field '{field}' is not used by {entry_type.name} in {mode.value} mode"
        )


class UnknownFieldError(ComposerError):
    """No such field on the model."""
    pass


COMMON_FIELDS = frozenset({"date", "account", "amount", "note"})

# Fields that only exist for some modes/entry types
SCOPED_FIELDS = (
    "to_account",
    "contact",
    "contact_account",
    "loan_record",
    "expense_category",
    "income_source",
    "attachment",
)


def legal_fields(mode: TransactionMode, entry_type: EntryType) -> frozenset[str]:
    """Fields that may hold a value for this mode and entry type."""
    mode = TransactionMode(mode)
    entry_type = EntryType(entry_type)
    fields = set(COMMON_FIELDS)

    if mode != TransactionMode.TRANSFER:
        fields.add("attachment")

    if mode == TransactionMode.STANDARD:
        if entry_type == EntryType.INCOME:
            fields.add("income_source")
        else:
            fields.add("expense_category")
    elif mode == TransactionMode.LOAN:
        fields.update({"contact", "contact_account", "loan_record"})
    elif mode == TransactionMode.TRANSFER:
        fields.add("to_account")

    return frozenset(fields)


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def _replace(draft: TransactionDraft, **changes: Any) -> TransactionDraft:
    """Validated copy of a draft with some fields changed."""
    return TransactionDraft.model_validate({**dict(draft), **changes})


def clear_out_of_scope(draft: TransactionDraft) -> TransactionDraft:
    """Drop every scoped field that is not legal for the draft."""
    allowed = legal_fields(draft.mode, draft.entry_type)
    stale = {
        field: None
        for field in SCOPED_FIELDS
        if field not in allowed and not is_empty(getattr(draft, field))
    }
    if not stale:
        return draft
    return draft.model_copy(update=stale)


def cleared_fields(before: TransactionDraft, after: TransactionDraft) -> list[str]:
    """Names of fields that had a value before and are empty after."""
    return [
        field for field in SCOPED_FIELDS
        if not is_empty(getattr(before, field)) and is_empty(getattr(after, field))
    ]


def new_draft(**fields: Any) -> TransactionDraft:
    """
    Start a fresh draft.

    If no entry type is given, the mode's default is used.

    Raises:
        InvalidEntryTypeError: If the given entry type doesn't fit the mode
    """
    mode = TransactionMode(fields.pop("mode", TransactionMode.STANDARD))
    entry_type = fields.pop("entry_type", None)
    if entry_type is None:
        entry_type = entry_types_for(mode)[0]
    entry_type = EntryType(entry_type)
    if entry_type not in entry_types_for(mode):
        raise InvalidEntryTypeError(entry_type, mode)

    draft = TransactionDraft(mode=mode, entry_type=entry_type, **fields)
    return clear_out_of_scope(draft)


def change_mode(draft: TransactionDraft, mode: TransactionMode) -> TransactionDraft:
    """
    Switch the draft to another mode.

    The entry type resets to the first legal one for the new mode, and
    every field not legal afterwards is cleared.
    """
    mode = TransactionMode(mode)
    if mode == draft.mode:
        return draft

    switched = draft.model_copy(update={
        "mode": mode,
        "entry_type": entry_types_for(mode)[0],
        "loan_record": None,
    })
    return clear_out_of_scope(switched)


def change_entry_type(draft: TransactionDraft, entry_type: EntryType) -> TransactionDraft:
    """
    Switch the entry type within the current mode.

    A selected loan record is always dropped: each record only fits one
    direction of settlement.

    Raises:
        InvalidEntryTypeError: If the entry type belongs to another mode
    """
    entry_type = EntryType(entry_type)
    if entry_type not in entry_types_for(draft.mode):
        raise InvalidEntryTypeError(entry_type, draft.mode)
    if entry_type == draft.entry_type:
        return draft

    switched = draft.model_copy(update={
        "entry_type": entry_type,
        "loan_record": None,
    })
    return clear_out_of_scope(switched)


def set_field(draft: TransactionDraft, field: str, value: Any) -> TransactionDraft:
    """
    Apply one form field change.

    Raises:
        UnknownFieldError: If the draft has no such field
        FieldNotAllowedError: If a value is given for a field the current
            mode/entry type doesn't use
        InvalidEntryTypeError: For an entry type of another mode
    """
    if field == "mode":
        return change_mode(draft, value)
    if field == "entry_type":
        return change_entry_type(draft, value)
    if field not in TransactionDraft.model_fields:
        raise UnknownFieldError(f"Unknown draft field: {field}")

    if (
        field in SCOPED_FIELDS
        and not is_empty(value)
        and field not in legal_fields(draft.mode, draft.entry_type)
    ):
        raise FieldNotAllowedError(field, draft.mode, draft.entry_type)

    updated = _replace(draft, **{field: value})

    # Contact accounts and loan records belong to one contact
    if field == "contact" and updated.contact != draft.contact:
        updated = updated.model_copy(update={
            "contact_account": None,
            "loan_record": None,
        })

    return updated
