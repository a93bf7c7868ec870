"""
Abstract Xpense API Interface

DESIGN DECISION: The composer talks to the external API through this
interface. This allows us to:
1. Use an in-memory fake in tests
2. Swap the HTTP client without touching the flow
3. Keep submission logic decoupled from transport details

Only the operations the composer needs are here: reading lookup tables
and posting an assembled request.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from xpense.models.payload import AssembledRequest
from xpense.models.transaction import (
    Account,
    Contact,
    ContactAccount,
    ExpenseCategory,
    IncomeSource,
    LoanRecord,
    ReferenceData,
)


class XpenseAPIInterface(ABC):
    """
    Abstract interface for the external Xpense API.

    All methods raise APIError subclasses on failure.
    """

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """GET accounts/ - the user's own accounts."""
        pass

    @abstractmethod
    async def list_contacts(self) -> list[Contact]:
        """GET contacts/"""
        pass

    @abstractmethod
    async def list_contact_accounts(self) -> list[ContactAccount]:
        """GET contact-accounts/"""
        pass

    @abstractmethod
    async def list_loans(self) -> list[LoanRecord]:
        """GET loans/ - open and closed loan records."""
        pass

    @abstractmethod
    async def list_expense_categories(self) -> list[ExpenseCategory]:
        """GET expense-categories/"""
        pass

    @abstractmethod
    async def list_income_sources(self) -> list[IncomeSource]:
        """GET income-sources/"""
        pass

    @abstractmethod
    async def submit(self, request: AssembledRequest) -> dict[str, Any]:
        """
        POST an assembled request.

        Args:
            request: Output of the payload assembler

        Returns:
            The created record as returned by the API

        Raises:
            APIRejectedError: If the API answered with an error status
            APIConnectionError: If the API could not be reached
        """
        pass

    async def load_reference_data(self) -> ReferenceData:
        """
        Fetch every lookup table concurrently.

        If one lookup fails, the others are cancelled and awaited before
        the error propagates, so no request outlives the call.
        """
        tasks = [
            asyncio.ensure_future(lookup)
            for lookup in (
                self.list_accounts(),
                self.list_contacts(),
                self.list_contact_accounts(),
                self.list_loans(),
                self.list_expense_categories(),
                self.list_income_sources(),
            )
        ]
        try:
            (
                accounts,
                contacts,
                contact_accounts,
                loans,
                expense_categories,
                income_sources,
            ) = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return ReferenceData(
            accounts=accounts,
            contacts=contacts,
            contact_accounts=contact_accounts,
            loans=loans,
            expense_categories=expense_categories,
            income_sources=income_sources,
        )


class APIError(Exception):
    """Base exception for API operations."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class APIRejectedError(APIError):
    """The API answered with an error status (validation, auth, server)."""
    pass


class APIConnectionError(APIError):
    """Could not reach the API (network failure, timeout)."""
    pass


class InvalidResponseError(APIError):
    """The API answered, but not with the data we expected."""
    pass
