# src/threadline/models/sso.py
"""SQLAlchemy model for in-flight SSO handshakes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base
from threadline.db.time import utcnow


class SsoToken(Base):
    """Per-attempt token tying an SSO redirect to a domain and pending session.

    Consumed by the first successful callback.
    """

    __tablename__ = "sso_tokens"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    domain: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("domains.domain", ondelete="CASCADE"),
        nullable=False,
    )
    commenter_token: Mapped[str] = mapped_column(String(128), nullable=False)
    creation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
