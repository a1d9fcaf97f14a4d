"""collab_fetch: resilient JSON fetching for a document storage service.

Public API:
    - fetch_helper(): one request, classified failures
    - get_with_retry_for_token_refresh(): one refresh-and-retry on 401/403
    - error_from_socket_error(): socket payloads into the same error type
    - no_retry / allow_list / block_list: retry filters
    - retry_async / RetryPolicy: caller-side retry loop
    - StorageClient / Config: the composed client
"""

from __future__ import annotations

import logging

from collab_fetch._http import TRANSPORT_FAILURE_STATUS
from collab_fetch.client import StorageClient
from collab_fetch.config import Config
from collab_fetch.errors import (
    CollabFetchError,
    ConfigurationError,
    ErrorKind,
    NetworkError,
)
from collab_fetch.fetch import FetchRequest, RequestOptions, ResponseEnvelope, fetch_helper
from collab_fetch.retry import RetryPolicy, retry_async, should_retry
from collab_fetch.retry_filter import (
    DEFAULT_RETRY_FILTER,
    RetryFilter,
    allow_list,
    block_list,
    no_retry,
)
from collab_fetch.socket_errors import SocketErrorPayload, error_from_socket_error
from collab_fetch.token_refresh import get_with_retry_for_token_refresh

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("collab-fetch")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("collab_fetch").addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_RETRY_FILTER",
    "TRANSPORT_FAILURE_STATUS",
    "CollabFetchError",
    "Config",
    "ConfigurationError",
    "ErrorKind",
    "FetchRequest",
    "NetworkError",
    "RequestOptions",
    "ResponseEnvelope",
    "RetryFilter",
    "RetryPolicy",
    "SocketErrorPayload",
    "StorageClient",
    "allow_list",
    "block_list",
    "error_from_socket_error",
    "fetch_helper",
    "get_with_retry_for_token_refresh",
    "no_retry",
    "retry_async",
    "should_retry",
]
