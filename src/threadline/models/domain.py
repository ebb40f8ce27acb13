# src/threadline/models/domain.py
"""SQLAlchemy models for registered domains, their moderators and pages."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from threadline.db.session import Base
from threadline.db.time import utcnow

DOMAIN_STATE_UNFROZEN = "unfrozen"
DOMAIN_STATE_FROZEN = "frozen"

SORT_POLICY_SCORE_DESC = "score-desc"
SORT_POLICY_CREATION_DESC = "creationdate-desc"
SORT_POLICY_CREATION_ASC = "creationdate-asc"

NOTIFY_ALL = "all"
NOTIFY_PENDING_MODERATION = "pending-moderation"
NOTIFY_NONE = "none"


class Domain(Base):
    """A site embedding comments, with its moderation policy."""

    __tablename__ = "domains"

    domain: Mapped[str] = mapped_column(String(255), primary_key=True)
    owner_hex: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("owners.owner_hex"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    creation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    state: Mapped[str] = mapped_column(String(16), nullable=False, default=DOMAIN_STATE_UNFROZEN)

    # Policy flags
    require_identification: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    require_moderation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderate_all_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    auto_spam_filter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_notification_policy: Mapped[str] = mapped_column(
        String(32), nullable=False, default=NOTIFY_PENDING_MODERATION
    )
    default_sort_policy: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SORT_POLICY_SCORE_DESC
    )

    # SSO is usable only when both are set. The secret is hex-encoded.
    sso_secret: Mapped[str | None] = mapped_column(Text, nullable=True)
    sso_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Identity provider name -> enabled.
    idps: Mapped[dict[str, bool]] = mapped_column(JSON, nullable=False, default=dict)

    moderators: Mapped[list[DomainModerator]] = relationship(
        "DomainModerator",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_frozen(self) -> bool:
        """Return True if the domain no longer accepts comments."""
        return self.state == DOMAIN_STATE_FROZEN

    @property
    def sso_configured(self) -> bool:
        """Return True when both SSO secret and callback URL are set."""
        return bool(self.sso_secret and self.sso_url)

    @property
    def moderator_emails(self) -> set[str]:
        """Return the set of moderator email addresses."""
        return {moderator.email for moderator in self.moderators}


class DomainModerator(Base):
    """Email granted comment-approval authority on a domain."""

    __tablename__ = "domain_moderators"

    domain: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("domains.domain", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    add_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Page(Base):
    """A (domain, path) thread; created lazily on its first comment."""

    __tablename__ = "pages"

    domain: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("domains.domain", ondelete="CASCADE"),
        primary_key=True,
    )
    path: Mapped[str] = mapped_column(String(2048), primary_key=True)
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sticky_comment_hex: Mapped[str | None] = mapped_column(String(128), nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
