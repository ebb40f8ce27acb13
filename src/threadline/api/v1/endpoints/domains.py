# src/threadline/api/v1/endpoints/domains.py
"""Domain settings endpoints for owners."""

from fastapi import APIRouter

from threadline.schemas.owner import DomainResponse
from threadline.services.domains import get_owned_domain

from ..dependencies import CurrentOwnerDep, SessionDep

router = APIRouter(prefix="/domains", tags=["domains"])


@router.get("/{domain}", response_model=DomainResponse)
async def read_domain(domain: str, owner: CurrentOwnerDep, db: SessionDep) -> DomainResponse:
    """Return the settings of a domain owned by the caller."""
    record = get_owned_domain(db, owner.owner_hex, domain)
    return DomainResponse(
        domain=record.domain,
        name=record.name,
        owner_hex=record.owner_hex,
        creation_date=record.creation_date,
        state=record.state,
        require_identification=record.require_identification,
        require_moderation=record.require_moderation,
        moderate_all_anonymous=record.moderate_all_anonymous,
        auto_spam_filter=record.auto_spam_filter,
        email_notification_policy=record.email_notification_policy,
        default_sort_policy=record.default_sort_policy,
        sso_url=record.sso_url,
        idps=dict(record.idps or {}),
        moderators=sorted(record.moderator_emails),
    )
