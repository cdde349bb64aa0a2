"""
Configuration for Piwik analytics.
"""
import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# Redirect hops followed by the transport before giving up
DEFAULT_MAX_REDIRECTS = 2

# Seconds, same as the httpx default
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class PiwikConfig:
    """Read-only configuration for a Piwik instance.

    Usage:
        config = PiwikConfig(url="piwik.example.org", site_id=1)

    Values set here are defaults: a parameter passed to a single
    API call overrides the matching field for that call only.
    """

    url: str | None = None  # Piwik endpoint, with or without scheme
    site_id: Any = None  # int, str or a list of site ids
    token_auth: str | None = None
    embed: bool = False  # Render the tracking tag

    # Transport
    timeout: float = DEFAULT_TIMEOUT
    max_redirects: int = DEFAULT_MAX_REDIRECTS

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.max_redirects < 0:
            raise ValueError("max_redirects must not be negative")

        if self.token_auth and self.url and self.url.lower().startswith("http://"):
            logger.warning(
                f"Piwik endpoint {self.url} uses plain http, "
                f"token_auth will be sent unencrypted unless 'secure' is set per call"
            )

    @property
    def has_url(self) -> bool:
        """Check if a Piwik endpoint is configured."""
        return bool(self.url)

    @classmethod
    def from_sources(
        cls,
        config_source: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Any] | None = None,
        mode: str = "development",
    ) -> "PiwikConfig":
        """Build a config from the host's config section and explicit values.

        Explicit overrides win over the config source. Unknown keys are
        ignored. If neither source sets ``embed``, the tag is embedded
        only in production mode.
        """
        merged: dict[str, Any] = {}
        merged.update(config_source or {})
        merged.update(overrides or {})

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            logger.debug(f"Ignoring unknown Piwik config keys: {', '.join(unknown)}")

        values = {key: value for key, value in merged.items() if key in known}
        if values.get("embed") is None:
            values["embed"] = mode == "production"
        else:
            values["embed"] = bool(values["embed"])

        return cls(**values)
