"""
Request Payload Models

The exact shapes the external API accepts for creating transactions.
Field names follow the API (snake_case, `loan` instead of `loan_record`).
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from xpense.models.transaction import ValidationIssue


TRANSACTIONS_ENDPOINT = "transactions/"
INTERNAL_TRANSFER_ENDPOINT = "internal-transactions/"


class SplitPayload(BaseModel):
    """One ledger entry inside an account allocation."""

    type: str
    amount: str
    note: str = ""
    expense_category: Optional[str] = None
    income_source: Optional[str] = None
    loan: Optional[str] = None


class AccountAllocation(BaseModel):
    """All splits booked against one of the user's accounts."""

    account: str
    splits: list[SplitPayload] = Field(..., min_length=1)


class TransactionPayload(BaseModel):
    """Body of POST transactions/."""

    date: str
    contact: Optional[str] = None
    contact_account: Optional[str] = None
    accounts: list[AccountAllocation] = Field(..., min_length=1)

    def accounts_json(self) -> str:
        """The accounts array pre-serialized, as multipart requests need it."""
        return json.dumps(
            [allocation.model_dump() for allocation in self.accounts]
        )


class InternalTransferPayload(BaseModel):
    """Body of POST internal-transactions/."""

    from_account: str
    to_account: str
    amount: str
    note: str = ""
    date: str


class AssembledRequest(BaseModel):
    """
    A fully assembled request, ready for the HTTP layer.

    Exactly one of `json_body` or (`data`, `files`) is set.
    """
    model_config = ConfigDict(frozen=True)

    endpoint: str
    json_body: Optional[dict[str, Any]] = None
    data: Optional[dict[str, str]] = None
    files: Optional[dict[str, tuple[str, bytes, str]]] = None

    @property
    def is_multipart(self) -> bool:
        return self.files is not None


class SubmissionOutcome(BaseModel):
    """
    What happened to a submit attempt.

    Submission never raises; the UI shows `message` either way.
    """

    success: bool
    message: str
    response: Optional[dict[str, Any]] = None
    status_code: Optional[int] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
