"""
FastAPI integration for Piwik.

Usage:
    app = FastAPI()
    templates = Jinja2Templates(directory="templates")
    piwik = setup_piwik(url="piwik.example.org", site_id=1)
    register_piwik(app, piwik, templates=templates)

    @app.get("/stats")
    def stats(request: Request, piwik: Piwik = Depends(get_piwik)):
        return piwik.api("VisitsSummary.get", {"period": "day", "date": "today"})

    # In templates: {{ piwik_tag() }}
"""
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.templating import Jinja2Templates
from markupsafe import Markup

from . import Piwik

logger = logging.getLogger(__name__)

# Attribute name on app.state
STATE_KEY = "piwik"

# Jinja2 global exposing the tracking tag
TAG_GLOBAL = "piwik_tag"


def register_piwik(app: FastAPI, piwik: Piwik, templates: Jinja2Templates | None = None) -> Piwik:
    """Attach a Piwik instance to the app and its templates.

    The instance is stored on ``app.state.piwik``. If templates are given,
    ``piwik_tag(site_id=None, url=None)`` becomes available in them.
    """
    setattr(app.state, STATE_KEY, piwik)

    if templates is not None:
        def piwik_tag(site_id: Any = None, url: str | None = None) -> Markup:
            return Markup(piwik.tag(site_id=site_id, url=url))

        templates.env.globals[TAG_GLOBAL] = piwik_tag

    logger.debug(f"Registered Piwik for {piwik.config.url or 'no endpoint'}")
    return piwik


def get_piwik(request: Request) -> Piwik:
    """FastAPI dependency returning the registered Piwik instance."""
    piwik = getattr(request.app.state, STATE_KEY, None)
    if piwik is None:
        raise HTTPException(status_code=500, detail="Piwik is not registered")
    return piwik


def request_dnt(request: Request) -> bool:
    """Check if the client sent a Do Not Track header."""
    return request.headers.get("DNT", "").strip() == "1"
