"""Single-shot JSON fetch with classified failures.

``fetch_helper`` performs exactly one request/response cycle. Every failure
surfaces as a :class:`~collab_fetch.errors.NetworkError`; looping on
``can_retry`` is left to the caller (see :mod:`collab_fetch.retry`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import urlsplit, urlunsplit

import httpx

from collab_fetch._http import MALFORMED_RESPONSE_STATUS, TRANSPORT_FAILURE_STATUS
from collab_fetch.errors import ErrorKind, NetworkError
from collab_fetch.retry_filter import DEFAULT_RETRY_FILTER

if TYPE_CHECKING:
    from collections.abc import Mapping

    from collab_fetch.retry_filter import RetryFilter

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


@dataclass(frozen=True)
class FetchRequest:
    """What to send: method, URL, headers and an optional body."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes | str | None = None
    json: Any = _UNSET

    def __post_init__(self) -> None:
        """Reject ambiguous bodies."""
        if self.content is not None and self.json is not _UNSET:
            raise ValueError("FetchRequest accepts either content or json, not both")
        object.__setattr__(self, "method", self.method.upper())


@dataclass(frozen=True)
class RequestOptions:
    """Per-call additions layered over a :class:`FetchRequest`."""

    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] = field(default_factory=dict)
    follow_redirects: bool = True


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Decoded body plus response headers, produced only on success.

    Header names keep their wire casing; repeated headers are joined with
    ``", "``.
    """

    content: T
    headers: dict[str, str]
    status_code: int = 200


def redact_url(url: str | httpx.URL) -> str:
    """Drop query, fragment and userinfo so tokens never reach messages."""
    try:
        parts = urlsplit(str(url))
        host = parts.hostname or ""
        if parts.port is not None:
            host = f"{host}:{parts.port}"
    except ValueError:
        return "<unparseable url>"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))


def _headers_as_received(response: httpx.Response) -> dict[str, str]:
    # httpx normalizes names to lower case; the raw list keeps the wire casing.
    # Repeated headers are joined with ", " under the first casing seen.
    names: dict[str, str] = {}
    values: dict[str, list[str]] = {}
    for raw_name, raw_value in response.headers.raw:
        name = raw_name.decode("latin-1")
        key = name.lower()
        names.setdefault(key, name)
        values.setdefault(key, []).append(raw_value.decode("latin-1"))
    return {names[key]: ", ".join(vals) for key, vals in values.items()}


def _build_request(
    client: httpx.AsyncClient,
    request: FetchRequest,
    options: RequestOptions | None,
) -> httpx.Request:
    headers = dict(request.headers)
    params: dict[str, str] = {}
    if options is not None:
        headers.update(options.headers)
        params.update(options.params)
    kwargs: dict[str, Any] = {"headers": headers}
    if params:
        kwargs["params"] = params
    if request.content is not None:
        kwargs["content"] = request.content
    elif request.json is not _UNSET:
        kwargs["json"] = request.json
    return client.build_request(request.method, request.url, **kwargs)


async def fetch_helper(
    request: FetchRequest | str,
    request_options: RequestOptions | None = None,
    *,
    retry_filter: RetryFilter = DEFAULT_RETRY_FILTER,
    client: httpx.AsyncClient | None = None,
) -> ResponseEnvelope[Any]:
    """Fetch ``request`` and decode its JSON body.

    Args:
        request: A :class:`FetchRequest` or a bare URL for a GET.
        request_options: Optional extra headers/params for this call.
        retry_filter: Decides ``can_retry`` for non-2xx responses.
        client: Reused when given; otherwise a client is opened for this call.

    Returns:
        ResponseEnvelope with the parsed JSON and the response headers.

    Raises:
        NetworkError: On transport failure (709), missing response or bad
            JSON (400, retriable), or a non-2xx status (filter decides).
    """
    if isinstance(request, str):
        request = FetchRequest(url=request)

    if client is None:
        async with httpx.AsyncClient(timeout=None) as owned:
            return await _fetch_once(owned, request, request_options, retry_filter)
    return await _fetch_once(client, request, request_options, retry_filter)


async def _fetch_once(
    client: httpx.AsyncClient,
    request: FetchRequest,
    options: RequestOptions | None,
    retry_filter: RetryFilter,
) -> ResponseEnvelope[Any]:
    safe_url = redact_url(request.url)
    follow_redirects = options.follow_redirects if options is not None else True

    try:
        http_request = _build_request(client, request, options)
        response: httpx.Response | None = await client.send(
            http_request, follow_redirects=follow_redirects, stream=True
        )
    except (httpx.RequestError, httpx.InvalidURL, OSError) as exc:
        logger.debug(
            "Transport failure for %s %s: %s", request.method, safe_url, type(exc).__name__
        )
        raise NetworkError(
            "fetch error, likely due to networking / DNS error or no server "
            f"({type(exc).__name__}) for {request.method} {safe_url}",
            status_code=TRANSPORT_FAILURE_STATUS,
            can_retry=True,
            details=exc,
            kind=ErrorKind.TRANSPORT,
        ) from exc

    if response is None:
        logger.debug("No response for %s %s", request.method, safe_url)
        raise NetworkError(
            "No response from the server",
            status_code=MALFORMED_RESPONSE_STATUS,
            can_retry=True,
            kind=ErrorKind.MALFORMED,
        )

    try:
        status = response.status_code
        if not response.is_success:
            can_retry = retry_filter(status)
            logger.debug(
                "HTTP %d for %s %s (can_retry=%s)",
                status,
                request.method,
                safe_url,
                can_retry,
            )
            raise NetworkError(
                f"Error {status} from the server",
                status_code=status,
                can_retry=can_retry,
                retry_after_s=parse_retry_after(response.headers),
                details=response,
            )

        # Large bodies are occasionally truncated mid-stream; a retry succeeds.
        try:
            await response.aread()
            content = response.json()
        except (httpx.RequestError, ValueError) as exc:
            logger.debug(
                "Unreadable JSON body from %s %s (HTTP %d): %s",
                request.method,
                safe_url,
                status,
                type(exc).__name__,
            )
            raise NetworkError(
                "Error while parsing fetch response",
                status_code=MALFORMED_RESPONSE_STATUS,
                can_retry=True,
                details=response,
                kind=ErrorKind.MALFORMED,
            ) from exc
    finally:
        await response.aclose()

    return ResponseEnvelope(
        content=content,
        headers=_headers_as_received(response),
        status_code=status,
    )


def parse_retry_after(headers: Mapping[str, str] | None) -> float | None:
    """Parse a numeric ``Retry-After`` header into seconds, if present."""
    if not headers:
        return None
    raw = headers.get("Retry-After")
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        seconds = float(raw.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
