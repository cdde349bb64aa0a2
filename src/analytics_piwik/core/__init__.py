"""
Core Piwik module.

Contains the request builder, the data models and the dispatch client.
"""

from .client import PiwikClient
from .models import ApiResult, Many, ParameterBag, ParamValue, PiwikQuery, Scalar, to_param_value
from .request import TRACK_METHOD, build_query, build_request, build_track_query, clean_endpoint

__all__ = [
    "Scalar", "Many", "ParamValue", "ParameterBag", "to_param_value",
    "PiwikQuery", "ApiResult",
    "build_query", "build_track_query", "build_request", "clean_endpoint", "TRACK_METHOD",
    "PiwikClient",
]
