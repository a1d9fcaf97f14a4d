"""Normalize errors pushed over the realtime socket channel.

The socket channel reports failures as small JSON payloads rather than HTTP
responses. Converting them here means consumers handle a single
:class:`~collab_fetch.errors.NetworkError` contract regardless of origin.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from collab_fetch.errors import NetworkError
from collab_fetch.retry_filter import DEFAULT_RETRY_FILTER, RetryFilter


class SocketErrorPayload(BaseModel):
    """Error shape sent by the socket service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str
    code: int
    retry_after: float | None = Field(default=None, alias="retryAfter")


def error_from_socket_error(
    payload: SocketErrorPayload | Mapping[str, Any],
    *,
    retry_filter: RetryFilter = DEFAULT_RETRY_FILTER,
) -> NetworkError:
    """Build (not raise) a NetworkError from a socket error payload."""
    if not isinstance(payload, SocketErrorPayload):
        payload = SocketErrorPayload.model_validate(dict(payload))
    return NetworkError(
        payload.message,
        status_code=payload.code,
        can_retry=retry_filter(payload.code),
        retry_after_s=payload.retry_after,
        details=payload,
    )
