"""
Piwik tracking tag for templates.
"""
import re
from typing import Any

from markupsafe import escape

from .config import PiwikConfig
from .core.request import DEFAULT_SITE_ID, clean_endpoint

NO_URL_COMMENT = "<!-- No Piwik-URL given -->"

_WHITESPACE = re.compile(r"\s+")


def _js_string(value: Any) -> str:
    """Escape a value for use inside a single quoted JavaScript string."""
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("<", "\\x3c")
    )


def tracking_tag(config: PiwikConfig, site_id: Any = None, url: str | None = None) -> str:
    """Generate the Piwik tracking tag HTML.

    Returns an empty string if embedding is disabled and a placeholder
    comment if no Piwik URL is known. The tag loads ``piwik.js``
    asynchronously and falls back to an image request without JavaScript.
    """
    if not config.embed:
        return ""

    site_id = site_id or config.site_id or DEFAULT_SITE_ID
    url = url or config.url
    if not url:
        return NO_URL_COMMENT

    url = clean_endpoint(url)
    js_url = _js_string(url)
    js_site_id = str(site_id) if str(site_id).isdigit() else f"'{_js_string(site_id)}'"
    html_url, html_site_id = escape(url), escape(site_id)

    tag = f'''<script type="text/javascript">var _paq=_paq||[];(function(){{var
u='http'+((document.location.protocol=='https:')?'s':'')+'://{js_url}';
with(_paq){{push(['setSiteId',{js_site_id}]);push(['setTrackerUrl',u+'piwik.php']);
push(['trackPageView'])}};var
d=document,g=d.createElement('script'),s=d.getElementsByTagName('script')[0];
if(!s){{s=d.getElementsByTagName('head')[0].firstChild}};
with(g){{type='text/javascript';defer=async=true;
src=u+'piwik.js';s.parentNode.insertBefore(g,s)}}}})();</script>
<noscript><img src="http://{html_url}piwik.php?idSite={html_site_id}&amp;rec=1" alt=""
style="border:0" /></noscript>'''

    return _WHITESPACE.sub(" ", tag).strip()
