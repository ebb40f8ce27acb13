# src/threadline/models/owner.py
"""SQLAlchemy models for domain owners and their credentials."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base
from threadline.db.time import utcnow


class Owner(Base):
    """Administrator of one or more registered domains."""

    __tablename__ = "owners"

    owner_hex: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    confirmed_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    join_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class OwnerSession(Base):
    """Opaque bearer token bound to exactly one owner; never expires."""

    __tablename__ = "owner_sessions"

    owner_token: Mapped[str] = mapped_column(String(128), primary_key=True)
    owner_hex: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("owners.owner_hex", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    login_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class OwnerConfirmToken(Base):
    """One-time email confirmation token sent on registration."""

    __tablename__ = "owner_confirm_tokens"

    confirm_hex: Mapped[str] = mapped_column(String(128), primary_key=True)
    owner_hex: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("owners.owner_hex", ondelete="CASCADE"),
        nullable=False,
    )
    send_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class OwnerResetToken(Base):
    """Password reset token; removed together with its owner."""

    __tablename__ = "owner_reset_tokens"

    reset_hex: Mapped[str] = mapped_column(String(128), primary_key=True)
    owner_hex: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("owners.owner_hex", ondelete="CASCADE"),
        nullable=False,
    )
    send_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
