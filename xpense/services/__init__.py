"""Services package."""

from xpense.services.api import (
    APIConnectionError,
    APIError,
    APIRejectedError,
    HttpXpenseAPI,
    InvalidResponseError,
    XpenseAPIInterface,
    get_error_message,
)

__all__ = [
    "APIConnectionError",
    "APIError",
    "APIRejectedError",
    "HttpXpenseAPI",
    "InvalidResponseError",
    "XpenseAPIInterface",
    "get_error_message",
]
