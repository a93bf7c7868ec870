"""
Human-readable messages from API errors.

The API answers rejected requests with either {"detail": "..."} or a map of
field names to lists of messages (possibly nested, e.g. per split). The user
gets one line of text, so everything is flattened here.
"""

from typing import Any

from xpense.services.api.interface import APIError


FALLBACK_MESSAGE = "An unexpected error occurred"
GENERIC_MESSAGE = "Something went wrong. Please try again."

# Keys whose values are hints for developers, not messages for users
SKIPPED_KEYS = frozenset({"suggestion"})


def flatten_error_messages(data: Any) -> list[str]:
    """Collect leaf messages of nested dicts/lists in order."""
    messages: list[str] = []

    if isinstance(data, list):
        for item in data:
            messages.extend(flatten_error_messages(item))
    elif isinstance(data, dict):
        for key, value in data.items():
            if key in SKIPPED_KEYS:
                continue
            messages.extend(flatten_error_messages(value))
    elif data is not None:
        messages.append(str(data))

    return messages


def message_from_payload(data: Any) -> str:
    """One line of text from a decoded error body."""
    if isinstance(data, str):
        return data

    if isinstance(data, (dict, list)):
        if isinstance(data, dict) and isinstance(data.get("detail"), str):
            return data["detail"]

        messages = flatten_error_messages(data)
        if messages:
            # Same message for several fields shows once
            return " ".join(dict.fromkeys(messages))

    return GENERIC_MESSAGE


def get_error_message(error: BaseException) -> str:
    """
    Message to show the user for a failed request.

    Uses the API's error body when there is one, otherwise the exception text.
    """
    payload = getattr(error, "payload", None) if isinstance(error, APIError) else None

    if payload is None or payload == "":
        return str(error) or FALLBACK_MESSAGE

    return message_from_payload(payload)
