"""User-facing messages for fetch and location failures."""

from weather_sync.constants import (
    MSG_EMPTY_RESPONSE,
    MSG_INVALID_REQUEST,
    MSG_MALFORMED_RESPONSE,
    MSG_NOT_FOUND,
    MSG_TRANSPORT_FAILURE,
    MSG_UNKNOWN_ERROR,
    MSG_UPSTREAM_ERROR,
)
from weather_sync.exceptions import (
    EmptyResponseError,
    FetchError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    TransportFailureError,
    UpstreamError,
)

_FIXED_MESSAGES: dict[type[FetchError], str] = {
    InvalidRequestError: MSG_INVALID_REQUEST,
    TransportFailureError: MSG_TRANSPORT_FAILURE,
    NotFoundError: MSG_NOT_FOUND,
    EmptyResponseError: MSG_EMPTY_RESPONSE,
    MalformedResponseError: MSG_MALFORMED_RESPONSE,
}


def message_for(error: FetchError) -> str:
    """Translate a fetch error into the message shown to the user.

    Args:
        error: The fetch failure

    Returns:
        One fixed string per error kind; upstream errors carry their status code.
    """
    if isinstance(error, UpstreamError):
        return MSG_UPSTREAM_ERROR.format(status_code=error.status_code)

    for error_type, message in _FIXED_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return MSG_UNKNOWN_ERROR


def is_connectivity_error(error: FetchError) -> bool:
    """Whether a failure means the client should present itself as offline.

    A place lookup that the server answered with "not found" proves the
    network works, so it does not count.
    """
    return not isinstance(error, NotFoundError)
