"""Storage client composing retry, token refresh and fetch.

Layering, outermost first::

    retry_async            # transient failures, driven by can_retry
      get_with_retry_for_token_refresh   # one refresh on 401/403
        fetch_helper       # one request, classified errors
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

import httpx

from collab_fetch.fetch import FetchRequest, RequestOptions, ResponseEnvelope, fetch_helper
from collab_fetch.retry import retry_async
from collab_fetch.retry_filter import RetryFilter, no_retry
from collab_fetch.token_refresh import get_with_retry_for_token_refresh

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from collab_fetch.config import Config

logger = logging.getLogger(__name__)


class StorageClient:
    """JSON client for the document storage service.

    Token acquisition is external: ``token_provider(force_refresh)`` returns a
    bearer token and must fetch a fresh one when ``force_refresh`` is True.
    """

    def __init__(
        self,
        config: Config,
        *,
        token_provider: Callable[[bool], Awaitable[str]],
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._token_provider = token_provider
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                base_url=config.base_url or "",
                timeout=config.timeout_s,
                headers={"User-Agent": config.user_agent},
            )
        self._client = client

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if not self._owns_client:
            return
        try:
            await self._client.aclose()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Cleanup should never mask the primary failure.
            logger.warning("HTTP client cleanup failed: %s", exc)

    async def get_json(
        self,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        retry_filter: RetryFilter | None = None,
    ) -> ResponseEnvelope[Any]:
        """GET ``path`` with token refresh and bounded transient retries."""
        request = FetchRequest(url=path, method="GET", headers=dict(headers or {}))
        options = RequestOptions(params=dict(params or {}))
        active_filter = retry_filter or self.config.retry_filter

        async def attempt() -> ResponseEnvelope[Any]:
            return await self._authorized_fetch(request, options, active_filter)

        return await retry_async(attempt, policy=self.config.retry)

    async def post_json(
        self,
        path: str,
        body: Any,
        *,
        headers: Mapping[str, str] | None = None,
        retry_filter: RetryFilter | None = None,
    ) -> ResponseEnvelope[Any]:
        """POST a JSON body once; writes are not retried unless asked for.

        The token-refresh retry still applies since an auth rejection means the
        write never happened.
        """
        request = FetchRequest(
            url=path, method="POST", headers=dict(headers or {}), json=body
        )
        return await self._authorized_fetch(request, None, retry_filter or no_retry())

    async def _authorized_fetch(
        self,
        request: FetchRequest,
        options: RequestOptions | None,
        retry_filter: RetryFilter,
    ) -> ResponseEnvelope[Any]:
        base = options or RequestOptions()

        async def get(force_refresh: bool) -> ResponseEnvelope[Any]:
            token = await self._token_provider(force_refresh)
            auth_options = RequestOptions(
                headers={**base.headers, "Authorization": f"Bearer {token}"},
                params=base.params,
                follow_redirects=base.follow_redirects,
            )
            return await fetch_helper(
                request,
                auth_options,
                retry_filter=retry_filter,
                client=self._client,
            )

        return await get_with_retry_for_token_refresh(get)
