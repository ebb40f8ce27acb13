"""Domain lookups and cascading removal."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from threadline.core.errors import MissingFieldError, NoSuchDomainError, NotAuthorisedError
from threadline.db.guard import storage_guard
from threadline.models import Comment, CommentVote, Domain, DomainModerator, Page, SsoToken
from threadline.services.authz import owns_domain

logger = logging.getLogger(__name__)


def get_domain(db: Session, domain_name: str) -> Domain:
    """Return a registered domain.

    Raises:
        MissingFieldError: If ``domain_name`` is empty.
        NoSuchDomainError: If the domain is not registered.
    """
    if not domain_name:
        raise MissingFieldError()
    with storage_guard(db, "loading domain"):
        domain = db.get(Domain, domain_name)
    if domain is None:
        raise NoSuchDomainError()
    return domain


def get_owned_domain(db: Session, owner_hex: str, domain_name: str) -> Domain:
    """Return ``domain_name`` if it belongs to ``owner_hex``."""
    if not owns_domain(db, owner_hex, domain_name):
        raise NotAuthorisedError()
    return get_domain(db, domain_name)


def delete_domain_rows(db: Session, domain_name: str) -> None:
    """Delete a domain with its votes, comments, pages, moderators and SSO tokens.

    Statements run in the caller's transaction; nothing is committed here.
    """
    comment_hexes = select(Comment.comment_hex).where(Comment.domain == domain_name)
    db.execute(
        delete(CommentVote)
        .where(CommentVote.comment_hex.in_(comment_hexes))
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(Comment)
        .where(Comment.domain == domain_name)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(Page).where(Page.domain == domain_name).execution_options(synchronize_session=False)
    )
    db.execute(
        delete(DomainModerator)
        .where(DomainModerator.domain == domain_name)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(SsoToken)
        .where(SsoToken.domain == domain_name)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(Domain)
        .where(Domain.domain == domain_name)
        .execution_options(synchronize_session=False)
    )
    logger.info("domain %s deleted", domain_name)
