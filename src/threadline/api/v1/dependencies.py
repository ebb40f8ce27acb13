"""Shared API dependencies for authentication and service construction."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from threadline.core.errors import NoSuchTokenError
from threadline.core.settings import Settings, get_settings
from threadline.db.session import get_db
from threadline.models import Commenter, Owner
from threadline.models.commenter import ANONYMOUS_COMMENTER_HEX
from threadline.services.commenter_auth import CommenterAuthService
from threadline.services.comments import CommentService
from threadline.services.notifications import NotificationDispatcher, get_notification_dispatcher
from threadline.services.owner_auth import OwnerAuthService
from threadline.services.spam import SpamChecker, get_spam_checker
from threadline.services.sso import SsoService
from threadline.services.votes import VoteLedger

# Missing headers are handled per endpoint: owners must authenticate, commenters
# fall back to anonymous.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_dispatcher() -> NotificationDispatcher:
    """Return the shared notification dispatcher."""
    return get_notification_dispatcher()


def get_spam_checker_dep() -> SpamChecker:
    """Return the shared spam checker."""
    return get_spam_checker()


DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
SpamCheckerDep = Annotated[SpamChecker, Depends(get_spam_checker_dep)]


def get_owner_auth_service(
    db: SessionDep, settings: SettingsDep, dispatcher: DispatcherDep
) -> OwnerAuthService:
    return OwnerAuthService(db, settings=settings, dispatcher=dispatcher)


def get_commenter_auth_service(db: SessionDep, settings: SettingsDep) -> CommenterAuthService:
    return CommenterAuthService(db, settings=settings)


def get_sso_service(db: SessionDep, settings: SettingsDep) -> SsoService:
    return SsoService(db, settings=settings)


def get_comment_service(
    db: SessionDep,
    settings: SettingsDep,
    spam_checker: SpamCheckerDep,
    dispatcher: DispatcherDep,
) -> CommentService:
    return CommentService(db, settings=settings, spam_checker=spam_checker, dispatcher=dispatcher)


def get_vote_ledger(db: SessionDep) -> VoteLedger:
    return VoteLedger(db)


OwnerAuthDep = Annotated[OwnerAuthService, Depends(get_owner_auth_service)]
CommenterAuthDep = Annotated[CommenterAuthService, Depends(get_commenter_auth_service)]
SsoServiceDep = Annotated[SsoService, Depends(get_sso_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
VoteLedgerDep = Annotated[VoteLedger, Depends(get_vote_ledger)]


def get_owner_token(credentials: BearerDep) -> str:
    """Return the owner bearer token.

    Raises:
        NoSuchTokenError: If no bearer token was sent.
    """
    if credentials is None or not credentials.credentials:
        raise NoSuchTokenError()
    return credentials.credentials


def get_current_owner(
    owner_token: Annotated[str, Depends(get_owner_token)],
    service: OwnerAuthDep,
) -> Owner:
    """Resolve the authenticated owner from the bearer token."""
    return service.get_by_token(owner_token)


def get_commenter_token(credentials: BearerDep) -> str:
    """Return the commenter bearer token, or the anonymous sentinel."""
    if credentials is None or not credentials.credentials:
        return ANONYMOUS_COMMENTER_HEX
    return credentials.credentials


def get_current_commenter(
    commenter_token: Annotated[str, Depends(get_commenter_token)],
    service: CommenterAuthDep,
) -> Commenter | None:
    """Resolve the requesting commenter; ``None`` means anonymous."""
    if commenter_token == ANONYMOUS_COMMENTER_HEX:
        return None
    return service.get_by_token(commenter_token)


OwnerTokenDep = Annotated[str, Depends(get_owner_token)]
CurrentOwnerDep = Annotated[Owner, Depends(get_current_owner)]
CommenterTokenDep = Annotated[str, Depends(get_commenter_token)]
CurrentCommenterDep = Annotated[Commenter | None, Depends(get_current_commenter)]
