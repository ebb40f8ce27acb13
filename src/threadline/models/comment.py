# src/threadline/models/comment.py
"""SQLAlchemy models for comments and votes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base
from threadline.db.time import utcnow

# Moderation states. Deletion is tracked separately by ``Comment.deleted``.
COMMENT_STATE_UNAPPROVED = "unapproved"
COMMENT_STATE_APPROVED = "approved"
COMMENT_STATE_FLAGGED = "flagged"

ROOT_PARENT_HEX = "root"

# Content substituted for a deleted comment's markdown and HTML.
TOMBSTONE = "[deleted]"


class Comment(Base):
    """A comment in a (domain, path) thread.

    Replies reference their parent by ``parent_hex``; top-level comments use
    ``"root"``. Deleted comments keep their row so replies stay attached.
    """

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "state IN ('unapproved', 'approved', 'flagged')",
            name="ck_comments_state",
        ),
        Index("ix_comments_domain_path", "domain", "path"),
    )

    comment_hex: Mapped[str] = mapped_column(String(128), primary_key=True)
    domain: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("domains.domain", ondelete="CASCADE"),
        nullable=False,
    )
    path: Mapped[str] = mapped_column(String(2048), nullable=False)
    # Commenter id or the anonymous sentinel, hence no foreign key.
    commenter_hex: Mapped[str] = mapped_column(String(128), nullable=False)
    parent_hex: Mapped[str] = mapped_column(String(128), nullable=False, default=ROOT_PARENT_HEX)
    markdown: Mapped[str] = mapped_column(Text, nullable=False)
    html: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    state: Mapped[str] = mapped_column(String(16), nullable=False, default=COMMENT_STATE_UNAPPROVED)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    creation_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    deleter_hex: Mapped[str | None] = mapped_column(String(128), nullable=True)
    deletion_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class CommentVote(Base):
    """Current standing of one commenter's vote on one comment."""

    __tablename__ = "votes"
    __table_args__ = (
        CheckConstraint("direction IN (-1, 0, 1)", name="ck_votes_direction"),
        Index("ix_votes_comment_hex", "comment_hex"),
    )

    comment_hex: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("comments.comment_hex", ondelete="CASCADE"),
        primary_key=True,
    )
    # Composite primary key prevents duplicate votes from the same commenter.
    commenter_hex: Mapped[str] = mapped_column(String(128), primary_key=True)

    # 1 = upvote, -1 = downvote, 0 = withdrawn.
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    vote_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
