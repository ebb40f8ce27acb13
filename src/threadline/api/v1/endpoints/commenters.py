# src/threadline/api/v1/endpoints/commenters.py
"""Commenter account and session endpoints."""

from fastapi import APIRouter, status

from threadline.core.errors import NoSuchTokenError
from threadline.models.commenter import ANONYMOUS_COMMENTER_HEX
from threadline.schemas.common import StatusResponse
from threadline.schemas.commenter import (
    CommenterCreate,
    CommenterCreated,
    CommenterLoginResponse,
    CommenterSelf,
    CommenterTokenResponse,
)
from threadline.schemas.owner import LoginRequest

from ..dependencies import CommenterAuthDep, CommenterTokenDep, CurrentCommenterDep

router = APIRouter(prefix="/commenters", tags=["commenters"])


@router.post("/new", response_model=CommenterCreated, status_code=status.HTTP_201_CREATED)
async def register_commenter(payload: CommenterCreate, service: CommenterAuthDep) -> CommenterCreated:
    """Register a local commenter account."""
    commenter_hex = service.register(
        payload.email,
        payload.name,
        payload.password,
        link=payload.link,
        photo=payload.photo,
    )
    return CommenterCreated(commenter_hex=commenter_hex)


@router.post("/login", response_model=CommenterLoginResponse)
def login_commenter(payload: LoginRequest, service: CommenterAuthDep) -> CommenterLoginResponse:
    """Exchange email and password for a commenter session token."""
    commenter_token, commenter = service.login(payload.email, payload.password)
    return CommenterLoginResponse(
        commenter_token=commenter_token,
        commenter=CommenterSelf.model_validate(commenter),
    )


@router.post("/token", response_model=CommenterTokenResponse)
async def new_commenter_token(service: CommenterAuthDep) -> CommenterTokenResponse:
    """Create a pending session used to start an SSO login."""
    return CommenterTokenResponse(commenter_token=service.new_token())


@router.get("/self", response_model=CommenterSelf)
async def read_commenter(commenter: CurrentCommenterDep) -> CommenterSelf:
    """Return the authenticated commenter's profile."""
    if commenter is None:
        raise NoSuchTokenError()
    return CommenterSelf.model_validate(commenter)


@router.post("/logout", response_model=StatusResponse)
async def logout_commenter(commenter_token: CommenterTokenDep, service: CommenterAuthDep) -> StatusResponse:
    """Invalidate the current commenter session token."""
    if commenter_token == ANONYMOUS_COMMENTER_HEX:
        raise NoSuchTokenError()
    service.logout(commenter_token)
    return StatusResponse()
