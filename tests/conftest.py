"""Shared fixtures for the composer tests."""

import asyncio
from typing import Any, Optional

import pytest

from xpense.models.payload import AssembledRequest
from xpense.models.transaction import (
    Account,
    Contact,
    ContactAccount,
    ExpenseCategory,
    IncomeSource,
    LoanDirection,
    LoanRecord,
    ReferenceData,
)
from xpense.services.api import XpenseAPIInterface


class FakeXpenseAPI(XpenseAPIInterface):
    """In-memory stand-in for the external API."""

    def __init__(
        self,
        reference: Optional[ReferenceData] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.reference = reference or ReferenceData()
        self.error = error
        self.delay = delay
        self.submitted: list[AssembledRequest] = []

    async def list_accounts(self):
        return list(self.reference.accounts)

    async def list_contacts(self):
        return list(self.reference.contacts)

    async def list_contact_accounts(self):
        return list(self.reference.contact_accounts)

    async def list_loans(self):
        return list(self.reference.loans)

    async def list_expense_categories(self):
        return list(self.reference.expense_categories)

    async def list_income_sources(self):
        return list(self.reference.income_sources)

    async def submit(self, request: AssembledRequest) -> dict[str, Any]:
        self.submitted.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"id": len(self.submitted)}


@pytest.fixture
def reference() -> ReferenceData:
    """Two accounts, two contacts with accounts, and a mix of loans."""
    return ReferenceData(
        accounts=[
            Account(id=1, bank_name="JazzCash", account_name="Wallet", balance="1200.00"),
            Account(id=2, bank_name="HBL", account_name="Salary", balance="50000.00"),
        ],
        contacts=[
            Contact(id=10, first_name="Ali", last_name="Khan"),
            Contact(id=11, first_name="Sara", last_name="Ahmed"),
        ],
        contact_accounts=[
            ContactAccount(id=20, contact=10, bank_name="EasyPaisa", account_name="Ali", account_number="0300"),
            ContactAccount(id=21, contact=11, bank_name="Meezan Bank", account_name="Sara", account_number="0123"),
        ],
        loans=[
            LoanRecord(id=30, contact=10, type=LoanDirection.TAKEN, total_amount="5000", remaining_amount="3000"),
            LoanRecord(id=31, contact=10, type=LoanDirection.LENT, total_amount="2000", remaining_amount="2000"),
            LoanRecord(id=32, contact=10, type=LoanDirection.TAKEN, total_amount="100", remaining_amount="0", is_closed=True),
            LoanRecord(id=33, contact=11, type=LoanDirection.TAKEN, total_amount="700", remaining_amount="700"),
        ],
        expense_categories=[
            ExpenseCategory(id=3, name="Groceries"),
            ExpenseCategory(id=4, name="Fuel"),
        ],
        income_sources=[
            IncomeSource(id=5, name="Salary"),
        ],
    )


@pytest.fixture
def fake_api(reference: ReferenceData) -> FakeXpenseAPI:
    return FakeXpenseAPI(reference=reference)
