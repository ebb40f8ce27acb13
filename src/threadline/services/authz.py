"""Authorization and role resolution for domains and comments."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from threadline.core.errors import MissingFieldError, NotModeratorError
from threadline.db.guard import storage_guard
from threadline.models import Comment, Commenter, Domain, Owner
from threadline.models.commenter import ANONYMOUS_COMMENTER_HEX

LOCAL_PROVIDER = "local"
SSO_PROVIDER_PREFIX = "sso:"


class ProviderKind(enum.Enum):
    """Kinds of identity a commenter can authenticate with."""

    ANONYMOUS = "anonymous"
    LOCAL = "local"
    SSO = "sso"
    FEDERATED = "federated"


@dataclass(frozen=True)
class AuthProvider:
    """Parsed commenter provider tag.

    ``value`` holds the domain for SSO identities and the provider name for
    federated ones.
    """

    kind: ProviderKind
    value: str | None = None

    @classmethod
    def anonymous(cls) -> AuthProvider:
        return cls(ProviderKind.ANONYMOUS)

    @classmethod
    def local(cls) -> AuthProvider:
        return cls(ProviderKind.LOCAL)

    @classmethod
    def sso(cls, domain: str) -> AuthProvider:
        return cls(ProviderKind.SSO, domain)

    @classmethod
    def federated(cls, provider: str) -> AuthProvider:
        return cls(ProviderKind.FEDERATED, provider)

    @classmethod
    def parse(cls, tag: str) -> AuthProvider:
        """Parse a stored provider tag."""
        if tag == ANONYMOUS_COMMENTER_HEX:
            return cls.anonymous()
        if tag == LOCAL_PROVIDER:
            return cls.local()
        if tag.startswith(SSO_PROVIDER_PREFIX):
            return cls.sso(tag[len(SSO_PROVIDER_PREFIX):])
        return cls.federated(tag)

    @property
    def tag(self) -> str:
        """Return the stored representation."""
        if self.kind is ProviderKind.ANONYMOUS:
            return ANONYMOUS_COMMENTER_HEX
        if self.kind is ProviderKind.LOCAL:
            return LOCAL_PROVIDER
        if self.kind is ProviderKind.SSO:
            return f"{SSO_PROVIDER_PREFIX}{self.value}"
        return self.value or ""

    def __str__(self) -> str:
        return self.tag


class Role(enum.Enum):
    """Relationship of a requester to a domain or comment."""

    OWNER = "owner"
    MODERATOR = "moderator"
    AUTHOR = "author"
    OTHER = "other"


def is_anonymous(commenter: Commenter | None) -> bool:
    """Return True for the unauthenticated commenter."""
    return commenter is None or commenter.commenter_hex == ANONYMOUS_COMMENTER_HEX


def is_moderator(domain: Domain, email: str | None) -> bool:
    """Return True if ``email`` moderates ``domain``."""
    if not email:
        return False
    return email in domain.moderator_emails


def is_domain_owner(domain: Domain, owner_hex: str | None) -> bool:
    """Return True if ``owner_hex`` owns ``domain``."""
    return bool(owner_hex) and domain.owner_hex == owner_hex


def owns_domain(db: Session, owner_hex: str, domain_name: str) -> bool:
    """Return True if a domain named ``domain_name`` belongs to ``owner_hex``.

    Raises:
        MissingFieldError: If either argument is empty.
    """
    if not owner_hex or not domain_name:
        raise MissingFieldError()
    stmt = select(
        exists().where(Domain.domain == domain_name, Domain.owner_hex == owner_hex)
    )
    with storage_guard(db, "checking domain ownership"):
        return bool(db.scalar(stmt))


def resolve_role(
    domain: Domain,
    commenter: Commenter | None,
    comment: Comment | None = None,
    owner: Owner | None = None,
) -> Role:
    """Return the strongest role the requester holds.

    Priority: owner of the domain, moderator, author of ``comment``, other.
    """
    if owner is not None and is_domain_owner(domain, owner.owner_hex):
        return Role.OWNER
    if is_anonymous(commenter):
        return Role.OTHER
    if is_moderator(domain, commenter.email):
        return Role.MODERATOR
    if comment is not None and comment.commenter_hex == commenter.commenter_hex:
        return Role.AUTHOR
    return Role.OTHER


def authorize_comment_mutation(
    domain: Domain, commenter: Commenter | None, comment: Comment
) -> Role:
    """Return the role allowing ``commenter`` to edit or delete ``comment``.

    Authors may always change their own comment; anyone else must moderate
    the domain.

    Raises:
        NotModeratorError: If the commenter is neither author nor moderator.
    """
    if not is_anonymous(commenter) and comment.commenter_hex == commenter.commenter_hex:
        return Role.AUTHOR
    if not is_anonymous(commenter) and is_moderator(domain, commenter.email):
        return Role.MODERATOR
    raise NotModeratorError()
