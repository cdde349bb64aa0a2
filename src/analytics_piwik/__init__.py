"""
Piwik analytics for web applications.

Usage:
    from analytics_piwik import setup_piwik

    piwik = setup_piwik(
        url="piwik.example.org",
        site_id=1,
        token_auth="your-token",
        mode="production",
    )

    # In templates: {{ piwik_tag() }}
    piwik.tag()

    # In handlers
    version = piwik.api("API.getPiwikVersion")
    visits = piwik.api("VisitsSummary.get", {"period": "day", "date": "today"})
"""
from typing import Any, Mapping

import httpx

from .config import PiwikConfig
from .core.client import Callback, PiwikClient
from .core.models import ApiResult, ParameterBag
from .errors import MissingEndpointError, PiwikError, PiwikRequestError
from .tag import tracking_tag

__version__ = "0.7.0"
__all__ = [
    "setup_piwik", "Piwik", "PiwikConfig", "PiwikClient", "ApiResult",
    "PiwikError", "MissingEndpointError", "PiwikRequestError",
]


class Piwik:
    """Main Piwik interface for an application."""

    def __init__(
        self,
        config: PiwikConfig,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.client = PiwikClient(config, transport=transport, async_transport=async_transport)

    def tag(self, site_id: Any = None, url: str | None = None) -> str:
        """Tracking tag HTML, empty if embedding is disabled."""
        return tracking_tag(self.config, site_id=site_id, url=url)

    def api(self, method: str, params: ParameterBag | None = None, callback: Callback | None = None) -> Any:
        """Query the Piwik API.

        Returns the decoded JSON, the request URL if ``api_test`` is set,
        or None. A failed request also returns None, so an empty answer
        and a failure look the same; use ``request()`` when the difference
        matters. Note that ``params`` is modified by the call.
        """
        return self.client.api(method, params, callback=callback)

    async def api_async(self, method: str, params: ParameterBag | None = None) -> Any:
        """Awaitable version of api() for async handlers."""
        return await self.client.api_async(method, params)

    def request(self, method: str, params: ParameterBag | None = None) -> ApiResult | str | None:
        """Like api(), but returns an ApiResult carrying errors."""
        return self.client.request(method, params)


def setup_piwik(
    url: str | None = None,
    site_id: Any = None,
    token_auth: str | None = None,
    embed: bool | None = None,
    config_source: Mapping[str, Any] | None = None,
    mode: str = "development",
    **options: Any,
) -> Piwik:
    """
    Set up Piwik for an application.

    Args:
        url: Piwik endpoint (e.g., "piwik.example.org" or "https://piwik.example.org/")
        site_id: Default site id, or a list of ids for multi-site queries
        token_auth: Default API token, "anonymous" is used if none is set
        embed: Render the tracking tag. Defaults to True in production mode only.
        config_source: The host's "Piwik" config section. Explicit arguments win.
        mode: Application mode, used for the ``embed`` default
        **options: Further PiwikConfig fields (timeout, max_redirects)

    Returns:
        Piwik instance with tag() and api()
    """
    overrides = {
        "url": url,
        "site_id": site_id,
        "token_auth": token_auth,
        "embed": embed,
        **options,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    config = PiwikConfig.from_sources(config_source, overrides, mode=mode)
    return Piwik(config)
