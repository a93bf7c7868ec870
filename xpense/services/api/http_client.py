"""
Xpense API over HTTP

Implements XpenseAPIInterface with httpx.

DESIGN DECISION: Lookups and submission are treated differently.
- Reference GETs are idempotent, so transport failures are retried
  with exponential backoff (tenacity).
- The transaction POST is NOT retried. A timeout after the server booked
  the transaction would otherwise book it twice.
"""

from typing import Any, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from xpense.config import ApiSettings, get_settings
from xpense.models.payload import AssembledRequest
from xpense.models.transaction import (
    Account,
    Contact,
    ContactAccount,
    ExpenseCategory,
    IncomeSource,
    LoanRecord,
)
from xpense.services.api.interface import (
    APIConnectionError,
    APIRejectedError,
    InvalidResponseError,
    XpenseAPIInterface,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


def _decode_body(response: httpx.Response) -> Any:
    """JSON body if there is one, otherwise the raw text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpXpenseAPI(XpenseAPIInterface):
    """
    httpx-based client for the Xpense REST API.

    A new AsyncClient is opened per call; the composer makes few requests
    and Streamlit runs each interaction on a fresh event loop.
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait_seconds: float = 1.0,
    ):
        """
        Initialize the client.

        Args:
            settings: API settings; loaded from the environment if None
            token: Session token; overrides the configured one
            transport: Custom httpx transport (tests use httpx.MockTransport)
            retry_wait_seconds: Base backoff between lookup retries
        """
        self._settings = settings or get_settings().api
        self._token = token or self._settings.token
        self._transport = transport
        self._retry_wait = retry_wait_seconds
        self._logger = structlog.get_logger(__name__)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"{self._settings.auth_scheme} {self._token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.base_url,
            headers=self._headers(),
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )

    async def _send(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """
        Perform one request and decode the body.

        Raises:
            APIRejectedError: On 4xx/5xx
            APIConnectionError: On network errors and timeouts
        """
        async with self._client() as client:
            try:
                response = await client.request(method, endpoint, **kwargs)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                payload = _decode_body(e.response)
                raise APIRejectedError(
                    f"{method} {endpoint} failed with status {e.response.status_code}",
                    status_code=e.response.status_code,
                    payload=payload,
                ) from e
            except httpx.TimeoutException as e:
                raise APIConnectionError(
                    f"{method} {endpoint} timed out after {self._settings.timeout_seconds}s"
                ) from e
            except httpx.RequestError as e:
                raise APIConnectionError(f"{method} {endpoint} failed: {e}") from e

        return _decode_body(response)

    async def _get_list(self, endpoint: str, model: Type[ModelT]) -> list[ModelT]:
        """GET a lookup table, retrying transport failures."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.reference_retry_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=10),
            retry=retry_if_exception_type(APIConnectionError),
            reraise=True,
        ):
            with attempt:
                data = await self._send("GET", endpoint)

        # Paginated endpoints wrap rows in {"results": [...]}
        if isinstance(data, dict) and "results" in data:
            data = data["results"]
        if not isinstance(data, list):
            raise InvalidResponseError(f"Expected a list from {endpoint}", payload=data)

        try:
            return [model.model_validate(row) for row in data]
        except ValidationError as e:
            raise InvalidResponseError(
                f"Invalid {model.__name__} data from {endpoint}: {e}", payload=data
            ) from e

    async def list_accounts(self) -> list[Account]:
        return await self._get_list("accounts/", Account)

    async def list_contacts(self) -> list[Contact]:
        return await self._get_list("contacts/", Contact)

    async def list_contact_accounts(self) -> list[ContactAccount]:
        return await self._get_list("contact-accounts/", ContactAccount)

    async def list_loans(self) -> list[LoanRecord]:
        return await self._get_list("loans/", LoanRecord)

    async def list_expense_categories(self) -> list[ExpenseCategory]:
        return await self._get_list("expense-categories/", ExpenseCategory)

    async def list_income_sources(self) -> list[IncomeSource]:
        return await self._get_list("income-sources/", IncomeSource)

    async def submit(self, request: AssembledRequest) -> dict[str, Any]:
        """POST the request once, as JSON or multipart."""
        if request.is_multipart:
            kwargs = {"data": request.data, "files": request.files}
        else:
            kwargs = {"json": request.json_body}

        self._logger.info(
            "api_submit",
            endpoint=request.endpoint,
            multipart=request.is_multipart,
        )
        data = await self._send("POST", request.endpoint, **kwargs)
        return data if isinstance(data, dict) else {}
