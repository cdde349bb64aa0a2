"""
HTTP client for the Piwik API.

Builds the request URL from a parameter bag and dispatches it with httpx,
either blocking, awaitable, or with a completion callback.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from ..config import PiwikConfig
from .models import ApiResult, ParameterBag, PiwikQuery, is_truthy
from .request import TRACK_METHOD, build_request

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class PiwikClient:
    """Client for building and sending Piwik API requests.

    Transport failures never raise from here: they come back as an
    ApiResult with ``error`` set, and as None from ``api()``.
    """

    def __init__(
        self,
        config: PiwikConfig,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._async_transport = async_transport
        # Callback tasks scheduled on a running loop
        self._pending: set[asyncio.Task] = set()

    def _prepare(self, method: str, params: ParameterBag) -> tuple[Optional[PiwikQuery], bool]:
        """Build the query, honouring do-not-track and api_test flags.

        Returns (None, False) when the caller asked not to be tracked.
        """
        if is_truthy(params.pop("dnt", None)):
            logger.debug(f"Skipping Piwik {method} request, do-not-track is set")
            return None, False

        api_test = is_truthy(params.pop("api_test", None))
        return build_request(method, params, self.config), api_test

    def _client_options(self) -> dict:
        return {
            "timeout": self.config.timeout,
            "follow_redirects": True,
            "max_redirects": self.config.max_redirects,
        }

    def _decode(self, method: str, url: str, response: httpx.Response) -> ApiResult:
        """Turn a successful response into an ApiResult."""
        if method == TRACK_METHOD:
            return ApiResult(url=url, data=True, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Piwik {method} returned invalid JSON: {e}")
            return ApiResult(url=url, error=f"Invalid JSON response: {e}", status_code=response.status_code)

        return ApiResult(url=url, data=data, status_code=response.status_code)

    def _failure(self, method: str, url: str, error: Exception) -> ApiResult:
        status_code = None
        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
        logger.warning(f"Piwik {method} request failed: {error}")
        return ApiResult(url=url, error=str(error) or type(error).__name__, status_code=status_code)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _send(self, method: str, query: PiwikQuery) -> ApiResult:
        url = query.to_url()
        logger.debug(f"Sending Piwik {method} request to {query.base_url}")
        try:
            with httpx.Client(transport=self._transport, **self._client_options()) as client:
                response = client.get(url)
                response.raise_for_status()
                return self._decode(method, url, response)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._failure(method, url, e)

    async def _send_async(self, method: str, query: PiwikQuery) -> ApiResult:
        url = query.to_url()
        logger.debug(f"Sending Piwik {method} request to {query.base_url}")
        try:
            async with httpx.AsyncClient(transport=self._async_transport, **self._client_options()) as client:
                response = await client.get(url)
                response.raise_for_status()
                return self._decode(method, url, response)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._failure(method, url, e)

    async def _send_with_callback(self, method: str, query: PiwikQuery, callback: Callback) -> None:
        result = await self._send_async(method, query)
        callback(result.data)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Piwik callback failed: {error}", exc_info=error)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def request(self, method: str, params: Optional[ParameterBag] = None) -> ApiResult | str | None:
        """Build and send a request, returning the structured result.

        Returns:
            The URL string if ``api_test`` is set, None if ``dnt`` is set,
            otherwise an ApiResult.

        Raises:
            MissingEndpointError: If no Piwik URL is configured or given
        """
        params = params if params is not None else {}
        query, api_test = self._prepare(method, params)
        if query is None:
            return None
        if api_test:
            return query.to_url()
        return self._send(method, query)

    async def request_async(self, method: str, params: Optional[ParameterBag] = None) -> ApiResult | str | None:
        """Awaitable version of request()."""
        params = params if params is not None else {}
        query, api_test = self._prepare(method, params)
        if query is None:
            return None
        if api_test:
            return query.to_url()
        return await self._send_async(method, query)

    def api(
        self,
        method: str,
        params: Optional[ParameterBag] = None,
        callback: Optional[Callback] = None,
    ) -> Any:
        """Query the Piwik API.

        Without a callback the call blocks and returns the decoded JSON,
        or None if the request failed. "No data" and "request failed" are
        indistinguishable here, use request() to tell them apart.

        With a callback the decoded JSON (or None) is passed to it exactly
        once. If an event loop is running in this thread the request is
        scheduled on it and this returns None immediately; otherwise a
        loop is run until the callback has fired.
        """
        if callback is None:
            result = self.request(method, params)
            return result.data if isinstance(result, ApiResult) else result

        params = params if params is not None else {}
        query, api_test = self._prepare(method, params)
        if query is None:
            return None
        if api_test:
            return query.to_url()

        coro = self._send_with_callback(method, query, callback)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return None

        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return None

    async def api_async(self, method: str, params: Optional[ParameterBag] = None) -> Any:
        """Awaitable version of api(), returns the decoded JSON or None."""
        result = await self.request_async(method, params)
        return result.data if isinstance(result, ApiResult) else result
