"""
Xpense API Services Package

Abstract interface, exceptions and the httpx implementation for the
external Xpense REST API.
"""

from xpense.services.api.interface import (
    APIConnectionError,
    APIError,
    APIRejectedError,
    InvalidResponseError,
    XpenseAPIInterface,
)
from xpense.services.api.errors import get_error_message, message_from_payload
from xpense.services.api.http_client import HttpXpenseAPI

__all__ = [
    # Interface
    "XpenseAPIInterface",
    # Exceptions
    "APIConnectionError",
    "APIError",
    "APIRejectedError",
    "InvalidResponseError",
    # Error messages
    "get_error_message",
    "message_from_payload",
    # HTTP implementation
    "HttpXpenseAPI",
]
