"""
Payload Assembler

Turns a draft (plus split lines) into the request the external API expects.

Three shapes:
1. TRANSFER -> internal-transactions/ with {from_account, to_account, amount, note, date}
2. STANDARD/LOAN, simple -> transactions/ with one account holding one split
3. STANDARD/LOAN, split -> transactions/ with lines grouped by account

IMPORTANT: When a receipt image is attached the request goes out as
multipart form data, and the API then expects `accounts` as a JSON string
field rather than a nested array. Both encodings are produced here.

The assembler assumes its input already passed is_submittable(); it does
not re-validate.
"""

from typing import Optional, Sequence

from xpense.models.payload import (
    INTERNAL_TRANSFER_ENDPOINT,
    TRANSACTIONS_ENDPOINT,
    AccountAllocation,
    AssembledRequest,
    InternalTransferPayload,
    SplitPayload,
    TransactionPayload,
)
from xpense.models.transaction import (
    LOAN_TYPES,
    EntryType,
    SplitLine,
    TransactionDraft,
    TransactionMode,
)


def _split_payload(
    mode: TransactionMode,
    entry_type: EntryType,
    amount: str,
    note: str,
    expense_category: Optional[str],
    income_source: Optional[str],
    loan_record: Optional[str],
) -> SplitPayload:
    """Only the reference relevant to the entry type is sent."""
    standard = mode == TransactionMode.STANDARD
    return SplitPayload(
        type=entry_type.value,
        amount=amount,
        note=note,
        expense_category=expense_category if standard and entry_type == EntryType.EXPENSE else None,
        income_source=income_source if standard and entry_type == EntryType.INCOME else None,
        loan=loan_record if mode == TransactionMode.LOAN and entry_type in LOAN_TYPES else None,
    )


def group_split_lines(lines: Sequence[SplitLine]) -> list[tuple[str, list[SplitLine]]]:
    """
    Group lines by account, keeping first-seen account order and line order
    within each account.
    """
    groups: dict[str, list[SplitLine]] = {}
    for line in lines:
        groups.setdefault(line.account, []).append(line)
    return list(groups.items())


def _line_payload(draft: TransactionDraft, line: SplitLine) -> SplitPayload:
    # STANDARD splits share the draft's entry type and note
    if draft.mode == TransactionMode.STANDARD:
        entry_type, note = draft.entry_type, draft.note
    else:
        entry_type, note = line.type, line.note

    return _split_payload(
        mode=draft.mode,
        entry_type=entry_type,
        amount=line.amount,
        note=note,
        expense_category=line.expense_category,
        income_source=line.income_source,
        loan_record=line.loan_record,
    )


def build_transaction_body(
    draft: TransactionDraft,
    split_enabled: bool = False,
    split_lines: Sequence[SplitLine] = (),
) -> TransactionPayload:
    """Body for POST transactions/ (STANDARD and LOAN modes)."""
    if split_enabled:
        accounts = [
            AccountAllocation(
                account=account,
                splits=[_line_payload(draft, line) for line in group],
            )
            for account, group in group_split_lines(split_lines)
        ]
    else:
        accounts = [
            AccountAllocation(
                account=draft.account,
                splits=[_split_payload(
                    mode=draft.mode,
                    entry_type=draft.entry_type,
                    amount=draft.amount,
                    note=draft.note,
                    expense_category=draft.expense_category,
                    income_source=draft.income_source,
                    loan_record=draft.loan_record,
                )],
            )
        ]

    loan_mode = draft.mode == TransactionMode.LOAN
    return TransactionPayload(
        date=draft.date,
        contact=draft.contact if loan_mode else None,
        contact_account=draft.contact_account if loan_mode else None,
        accounts=accounts,
    )


def build_transfer_body(draft: TransactionDraft) -> InternalTransferPayload:
    """Body for POST internal-transactions/."""
    return InternalTransferPayload(
        from_account=draft.account,
        to_account=draft.to_account,
        amount=draft.amount,
        note=draft.note,
        date=draft.date,
    )


def assemble(
    draft: TransactionDraft,
    split_enabled: bool = False,
    split_lines: Sequence[SplitLine] = (),
) -> AssembledRequest:
    """
    Build the request for a submittable draft.

    Returns:
        AssembledRequest with either a JSON body, or multipart form
        fields plus the image file when an attachment is present.
    """
    if draft.mode == TransactionMode.TRANSFER:
        return AssembledRequest(
            endpoint=INTERNAL_TRANSFER_ENDPOINT,
            json_body=build_transfer_body(draft).model_dump(),
        )

    body = build_transaction_body(draft, split_enabled, split_lines)

    if draft.attachment is None:
        return AssembledRequest(
            endpoint=TRANSACTIONS_ENDPOINT,
            json_body=body.model_dump(),
        )

    attachment = draft.attachment
    return AssembledRequest(
        endpoint=TRANSACTIONS_ENDPOINT,
        data={
            "date": body.date,
            "contact": body.contact or "",
            "contact_account": body.contact_account or "",
            "accounts": body.accounts_json(),
        },
        files={
            "image": (attachment.filename, attachment.content, attachment.content_type),
        },
    )
