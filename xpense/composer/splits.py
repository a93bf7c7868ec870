"""
Split Line Operations

A split divides one logical transaction across several accounts. New lines
start from the draft's values so the user only edits what differs.

All functions are pure: they return new objects and never mutate inputs.
"""

from decimal import Decimal
from typing import Any, Sequence

from xpense.composer.draft import ComposerError, UnknownFieldError
from xpense.models.transaction import (
    EntryType,
    SplitLine,
    TransactionDraft,
    TransactionMode,
)


class SplitNotSupportedError(ComposerError):
    """Internal transfers can't be split."""
    pass


def create_split_line(draft: TransactionDraft) -> SplitLine:
    """
    New split line prefilled from the draft.

    Type, note, category/source and loan record are copied; account and
    amount are left for the user.

    Raises:
        SplitNotSupportedError: For TRANSFER drafts
    """
    if draft.mode == TransactionMode.TRANSFER:
        raise SplitNotSupportedError("Internal transfers cannot be split")

    return SplitLine(
        type=draft.entry_type,
        note=draft.note,
        expense_category=draft.expense_category,
        income_source=draft.income_source,
        loan_record=draft.loan_record,
    )


def update_split_line(line: SplitLine, field: str, value: Any) -> SplitLine:
    """
    Return a copy of the line with one field changed.

    Changing the type drops the loan record, which only fits one direction.

    Raises:
        UnknownFieldError: If split lines have no such field
    """
    if field not in SplitLine.model_fields:
        raise UnknownFieldError(f"Unknown split line field: {field}")

    updated = SplitLine.model_validate({**dict(line), field: value})
    if field == "type" and updated.type != line.type:
        updated = updated.model_copy(update={"loan_record": None})
    return updated


def rescope_split_line(line: SplitLine, entry_type: EntryType) -> SplitLine:
    """
    Copy of a STANDARD line following a new draft entry type.

    The line takes the type and keeps only the reference field that type
    books against: expense_category for EXPENSE, income_source for INCOME.
    """
    update: dict[str, Any] = {"type": entry_type}
    if entry_type != EntryType.EXPENSE:
        update["expense_category"] = None
    if entry_type != EntryType.INCOME:
        update["income_source"] = None
    return line.model_copy(update=update)


def remove_split_line(lines: Sequence[SplitLine], index: int) -> list[SplitLine]:
    """
    New list without the line at `index`.

    Raises:
        IndexError: If there is no such line
    """
    if not 0 <= index < len(lines):
        raise IndexError(f"No split line at index {index}")
    return [line for i, line in enumerate(lines) if i != index]


def split_total(lines: Sequence[SplitLine]) -> Decimal:
    """Sum of all positive, parseable line amounts."""
    total = Decimal("0")
    for line in lines:
        amount = line.parsed_amount
        if amount is not None and amount > 0:
            total += amount
    return total
