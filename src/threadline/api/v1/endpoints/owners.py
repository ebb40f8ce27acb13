# src/threadline/api/v1/endpoints/owners.py
"""Owner account endpoints."""

from fastapi import APIRouter, Query, status
from fastapi.responses import RedirectResponse

from threadline.core.errors import ThreadlineError
from threadline.schemas.common import StatusResponse
from threadline.schemas.owner import (
    LoginRequest,
    OwnerCreate,
    OwnerCreated,
    OwnerDeleteRequest,
    OwnerLoginResponse,
    OwnerResponse,
)

from ..dependencies import CurrentOwnerDep, OwnerAuthDep, OwnerTokenDep, SettingsDep

router = APIRouter(prefix="/owners", tags=["owners"])


@router.post("/new", response_model=OwnerCreated, status_code=status.HTTP_201_CREATED)
async def register_owner(payload: OwnerCreate, service: OwnerAuthDep) -> OwnerCreated:
    """Register a new domain owner."""
    owner_hex = service.register(payload.email, payload.name, payload.password)
    return OwnerCreated(owner_hex=owner_hex, confirm_email_sent=service.settings.smtp_configured)


@router.get("/confirm")
async def confirm_owner(
    service: OwnerAuthDep,
    settings: SettingsDep,
    token: str = Query("", description="Confirmation token from the email link"),
) -> RedirectResponse:
    """Confirm an owner's email address and redirect to the login page."""
    try:
        service.confirm(token)
        confirmed = "true"
    except ThreadlineError:
        confirmed = "false"
    return RedirectResponse(
        f"{settings.frontend_url}/login?confirmed={confirmed}",
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


@router.post("/login", response_model=OwnerLoginResponse)
def login_owner(payload: LoginRequest, service: OwnerAuthDep) -> OwnerLoginResponse:
    """Exchange email and password for an owner session token."""
    return OwnerLoginResponse(owner_token=service.login(payload.email, payload.password))


@router.get("/self", response_model=OwnerResponse)
async def read_owner(owner: CurrentOwnerDep) -> OwnerResponse:
    """Return the authenticated owner's profile."""
    return OwnerResponse.model_validate(owner)


@router.post("/logout", response_model=StatusResponse)
async def logout_owner(owner_token: OwnerTokenDep, service: OwnerAuthDep) -> StatusResponse:
    """Invalidate the current owner session token."""
    service.logout(owner_token)
    return StatusResponse()


@router.post("/delete", response_model=StatusResponse)
async def delete_owner(
    payload: OwnerDeleteRequest,
    owner: CurrentOwnerDep,
    service: OwnerAuthDep,
) -> StatusResponse:
    """Delete the authenticated owner's account."""
    service.delete_owner(owner.owner_hex, cascade_domains=payload.delete_domains)
    return StatusResponse()
