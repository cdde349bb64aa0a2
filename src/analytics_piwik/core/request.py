"""
Request building for the Piwik HTTP API.

Turns an API method name and a loosely typed parameter bag into a
PiwikQuery. Recognized control keys are popped from the bag as they
are folded into the query, everything left over is merged verbatim.

Example:
    query = build_query("VisitsSummary.get", {
        "site_id": [4, 5],
        "period": "range",
        "date": ["2012-11-01", "2012-12-01"],
    }, config)
    query.to_url()
    # http://piwik.example.org/?module=API&method=VisitsSummary.get&format=JSON
    #   &idSite=4,5&token_auth=anonymous&period=range&date=2012-11-01,2012-12-01
"""
import logging
import re

from ..config import PiwikConfig
from ..errors import MissingEndpointError
from .models import Many, ParameterBag, ParamValue, PiwikQuery, Scalar, is_truthy, to_param_value

logger = logging.getLogger(__name__)

# Method name that targets the tracking endpoint instead of the reporting API
TRACK_METHOD = "Track"

# Periods accepted by the reporting API
PERIOD_PATTERN = re.compile(r"^(?:day|week|month|year|range)$")

ANONYMOUS_TOKEN = "anonymous"
DEFAULT_SITE_ID = 1

# Keys the caller may not override with raw values
RESERVED_KEYS = ("format", "module", "method")

_SCHEME_PATTERN = re.compile(r"^https?:/*", re.IGNORECASE)
_SCRIPT_PATTERN = re.compile(r"(?:piwik\.(?:php|js)|index\.php)$", re.IGNORECASE)


def clean_endpoint(url: str) -> str:
    """Strip scheme and script name from a Piwik URL, keep a trailing slash.

    >>> clean_endpoint("https://piwik.example.org/stats/piwik.php")
    'piwik.example.org/stats/'
    """
    url = _SCHEME_PATTERN.sub("", url.strip())
    url = _SCRIPT_PATTERN.sub("", url)
    if not url.endswith("/"):
        url += "/"
    return url


def resolve_endpoint(params: ParameterBag, config: PiwikConfig, key: str = "url") -> str:
    """Resolve the endpoint base URL with the scheme chosen by ``secure``.

    Raises:
        MissingEndpointError: If neither params nor config provide a URL
    """
    url = params.pop(key, None) or config.url
    if not url:
        raise MissingEndpointError("No Piwik URL given in call parameters or configuration")

    scheme = "https" if is_truthy(params.get("secure")) else "http"
    return f"{scheme}://{clean_endpoint(str(url))}"


def resolve_token(params: ParameterBag, config: PiwikConfig, fallback: str | None = ANONYMOUS_TOKEN) -> str | None:
    return params.pop("token_auth", None) or config.token_auth or fallback


def resolve_site(params: ParameterBag, config: PiwikConfig, *aliases: str) -> str:
    """Resolve the site id, preferring ``site_id`` over its aliases.

    All aliases are removed from the bag. A list of ids is comma joined.
    """
    candidates = [params.pop(name, None) for name in ("site_id", *aliases)]
    raw = next((value for value in candidates if value), None)
    site = to_param_value(raw or config.site_id or DEFAULT_SITE_ID)
    return site.joined()


def _add_urls(query: PiwikQuery, urls: ParamValue) -> None:
    if isinstance(urls, Many):
        for index, value in enumerate(urls.values):
            query.set(f"urls[{index}]", value)
    else:
        query.set("urls", urls.value)


def _add_period(query: PiwikQuery, params: ParameterBag) -> None:
    period = str(params.pop("period")).lower()
    date = to_param_value(params.pop("date", None))

    if period == "range" and isinstance(date, Many):
        date = Scalar(date.joined())

    if not PERIOD_PATTERN.match(period):
        logger.debug(f"Dropping unsupported period {period!r}")
        return

    query.set("period", period)
    # Piwik must see the date even when absent, Piwik rejects it there
    query.set("date", date if date is not None else Scalar(""))


def build_query(method: str, params: ParameterBag, config: PiwikConfig) -> PiwikQuery:
    """Build a reporting API query for ``method``.

    The bag is mutated: control keys are removed, the remainder is
    merged into the query and may replace earlier keys of the same name.

    Raises:
        MissingEndpointError: If no endpoint is available
    """
    endpoint = resolve_endpoint(params, config)
    token_auth = resolve_token(params, config)
    site_id = resolve_site(params, config, "idSite")

    for key in RESERVED_KEYS:
        params.pop(key, None)

    query = PiwikQuery(endpoint)
    query.set("module", "API")
    query.set("method", method)
    query.set("format", "JSON")
    query.set("idSite", site_id)
    query.set("token_auth", token_auth)

    urls = to_param_value(params.pop("urls", None))
    if urls is not None:
        _add_urls(query, urls)

    if params.get("period"):
        _add_period(query, params)

    # TODO: map Piwik filter_* options (filter_limit, filter_sort_column) once
    # there is a typed interface for them; they pass through verbatim for now
    query.merge(params)
    return query


def build_track_query(params: ParameterBag, config: PiwikConfig) -> PiwikQuery:
    """Build a tracking request against ``piwik.php``.

    The endpoint is taken from ``piwik_url`` since ``url`` names the
    tracked page. ``token_auth`` is only sent when one is known.
    """
    endpoint = resolve_endpoint(params, config, key="piwik_url")
    params.pop("secure", None)
    token_auth = resolve_token(params, config, fallback=None)
    site_id = resolve_site(params, config, "idSite", "idsite")

    query = PiwikQuery(f"{endpoint}piwik.php")
    query.set("idsite", site_id)
    query.set("rec", 1)
    query.set("send_image", 0)
    if token_auth:
        query.set("token_auth", token_auth)

    query.merge(params)
    return query


def build_request(method: str, params: ParameterBag, config: PiwikConfig) -> PiwikQuery:
    """Build the query for ``method``, tracking or reporting."""
    if method == TRACK_METHOD:
        return build_track_query(params, config)
    return build_query(method, params, config)
