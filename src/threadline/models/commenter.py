# src/threadline/models/commenter.py
"""SQLAlchemy models for commenter identities and sessions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base
from threadline.db.time import utcnow

# Author id of anonymous comments; never stored in the commenters table.
ANONYMOUS_COMMENTER_HEX = "anonymous"

# Placeholder for absent profile attributes.
UNDEFINED = "undefined"


class Commenter(Base):
    """Identity able to author comments.

    The same email may exist once per provider: a local account and an SSO
    identity for the same address are distinct commenters.
    """

    __tablename__ = "commenters"
    __table_args__ = (UniqueConstraint("email", "provider", name="uq_commenters_email_provider"),)

    commenter_hex: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str] = mapped_column(Text, nullable=False, default=UNDEFINED)
    photo: Mapped[str] = mapped_column(Text, nullable=False, default=UNDEFINED)
    provider: Mapped[str] = mapped_column(Text, nullable=False)
    # Only local commenters have a password.
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    join_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class CommenterSession(Base):
    """Bearer token for a commenter.

    A NULL ``commenter_hex`` marks a pending session still waiting for an SSO
    callback to bind it.
    """

    __tablename__ = "commenter_sessions"

    commenter_token: Mapped[str] = mapped_column(String(128), primary_key=True)
    commenter_hex: Mapped[str | None] = mapped_column(
        String(128),
        ForeignKey("commenters.commenter_hex", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    creation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_pending(self) -> bool:
        """Return True while no commenter is bound to the session."""
        return self.commenter_hex is None
