# src/threadline/api/v1/endpoints/sso.py
"""Single-Sign-On redirect and callback endpoints.

The callback is loaded in a popup by the embedding page, so it answers with
tiny HTML documents rather than JSON.
"""

import html
import logging
from typing import Annotated

from fastapi import APIRouter, Form, Query, status
from fastapi.responses import HTMLResponse, RedirectResponse

from threadline.core.errors import ThreadlineError
from threadline.services.sso import SsoService

from ..dependencies import SsoServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sso", tags=["sso"])

CALLBACK_SUCCESS_HTML = "<html><script>window.parent.close()</script></html>"


@router.get("/redirect")
async def sso_redirect(
    service: SsoServiceDep,
    domain: Annotated[str, Query(description="Domain the commenter is signing in to")] = "",
    commenter_token: Annotated[str, Query(description="Pending commenter token")] = "",
) -> RedirectResponse:
    """Send the commenter to the domain's SSO endpoint."""
    url = service.redirect_url(domain, commenter_token)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


def _run_callback(service: SsoService, payload: str, hmac: str) -> HTMLResponse:
    try:
        commenter = service.callback(payload, hmac)
    except ThreadlineError as exc:
        logger.info("SSO callback rejected: %s", exc.code)
        return HTMLResponse(
            f"Error: {html.escape(exc.message)}\n",
            status_code=exc.status_code if exc.status_code >= 500 else status.HTTP_400_BAD_REQUEST,
        )
    logger.debug("SSO callback bound commenter %s", commenter.commenter_hex)
    return HTMLResponse(CALLBACK_SUCCESS_HTML)


@router.get("/callback", response_class=HTMLResponse)
async def sso_callback(
    service: SsoServiceDep,
    payload: Annotated[str, Query()] = "",
    hmac: Annotated[str, Query()] = "",
) -> HTMLResponse:
    """Finish the SSO handshake from query parameters."""
    return _run_callback(service, payload, hmac)


@router.post("/callback", response_class=HTMLResponse)
async def sso_callback_form(
    service: SsoServiceDep,
    payload: Annotated[str, Form()] = "",
    hmac: Annotated[str, Form()] = "",
) -> HTMLResponse:
    """Finish the SSO handshake from a form post."""
    return _run_callback(service, payload, hmac)
