"""
Data models for Piwik API requests.
"""
from dataclasses import dataclass
from typing import Any, Iterator, Union
from urllib.parse import quote_plus

from pydantic import BaseModel

from ..errors import PiwikRequestError

# Characters left unescaped in query keys and values
QUERY_SAFE = "-._~!$'()*,:@/?"

# =============================================================================
# Parameter values
# =============================================================================

@dataclass(frozen=True)
class Scalar:
    """A single query parameter value."""
    value: str

    def joined(self) -> str:
        return self.value


@dataclass(frozen=True)
class Many:
    """A list of query parameter values, e.g. site ids or urls."""
    values: tuple[str, ...]

    def joined(self) -> str:
        """Comma separated form, as Piwik expects for ids and date ranges."""
        return ",".join(self.values)


ParamValue = Union[Scalar, Many]

# The loosely typed bag passed by callers
ParameterBag = dict[str, Any]


def _render(raw: Any) -> str:
    if isinstance(raw, bool):
        return "1" if raw else "0"
    return str(raw)


def to_param_value(raw: Any) -> ParamValue | None:
    """Convert a raw bag value into a Scalar or Many.

    None stays None. Lists and tuples become Many, everything else
    becomes Scalar.
    """
    if raw is None:
        return None
    if isinstance(raw, (Scalar, Many)):
        return raw
    if isinstance(raw, (list, tuple)):
        return Many(tuple(_render(item) for item in raw))
    return Scalar(_render(raw))


def is_truthy(raw: Any) -> bool:
    """Truthiness of a bag flag. The strings "0" and "" count as false."""
    if isinstance(raw, str):
        return raw not in ("", "0")
    return bool(raw)


# =============================================================================
# Outgoing query
# =============================================================================

class PiwikQuery:
    """Endpoint URL plus an ordered mapping of query parameters.

    Setting a key that already exists replaces its value in place.
    """

    def __init__(self, base_url: str):
        self.base_url = base_url
        self._params: dict[str, ParamValue | None] = {}

    def set(self, key: str, value: Any) -> None:
        self._params[key] = to_param_value(value)

    def merge(self, params: ParameterBag) -> None:
        """Merge a bag into the query, last value wins."""
        for key, value in params.items():
            self.set(key, value)

    def get(self, key: str) -> ParamValue | None:
        return self._params.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._params

    def pairs(self) -> Iterator[tuple[str, str]]:
        """Yield (key, value) pairs in serialization order.

        Many values repeat the key. Absent values are skipped.
        """
        for key, value in self._params.items():
            if value is None:
                continue
            if isinstance(value, Many):
                for item in value.values:
                    yield key, item
            else:
                yield key, value.value

    def query_string(self) -> str:
        return "&".join(
            f"{quote_plus(key, safe=QUERY_SAFE)}={quote_plus(value, safe=QUERY_SAFE)}"
            for key, value in self.pairs()
        )

    def to_url(self) -> str:
        query = self.query_string()
        return f"{self.base_url}?{query}" if query else self.base_url

    def __str__(self) -> str:
        return self.to_url()

    def __repr__(self) -> str:
        return f"PiwikQuery({self.to_url()!r})"


# =============================================================================
# Results
# =============================================================================

class ApiResult(BaseModel):
    """Outcome of a dispatched request.

    ``data`` holds the decoded JSON body (or True for tracking requests).
    A failed request has ``error`` set and ``data`` None.
    """
    url: str
    data: Any = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise PiwikRequestError if the request failed."""
        if self.error is not None:
            raise PiwikRequestError(self.error, url=self.url, status_code=self.status_code)
