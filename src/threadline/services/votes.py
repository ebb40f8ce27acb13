"""Vote ledger for comments."""

from __future__ import annotations

import logging

from sqlalchemy import Select, func, select, update
from sqlalchemy.orm import Session

from threadline.core.errors import (
    InternalError,
    MissingFieldError,
    NoSuchCommentError,
    NotAuthorisedError,
    SelfVoteError,
)
from threadline.db.guard import storage_guard
from threadline.db.session import dialect_insert
from threadline.db.time import utcnow
from threadline.models import Comment, Commenter, CommentVote
from threadline.services.authz import is_anonymous

logger = logging.getLogger(__name__)


def author_lookup(comment_hex: str) -> Select:
    """Select the author and tombstone flag of a comment, locking its row.

    Concurrent votes on the same comment queue on this lock, so each score
    recompute sees every committed vote.
    """
    return (
        select(Comment.commenter_hex, Comment.deleted)
        .where(Comment.comment_hex == comment_hex)
        .with_for_update()
    )


def clamp_direction(direction: int) -> int:
    """Map any integer onto -1, 0 or +1."""
    if direction > 0:
        return 1
    if direction < 0:
        return -1
    return 0


class VoteLedger:
    """Records one vote per (comment, commenter) and keeps scores in sync."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def vote(self, commenter: Commenter | None, comment_hex: str, direction: int) -> tuple[int, int]:
        """Cast, change or withdraw a vote.

        Returns the stored direction and the comment's recomputed score.

        Raises:
            NotAuthorisedError: If the voter is anonymous.
            MissingFieldError: If ``comment_hex`` is empty.
            NoSuchCommentError: If the comment has been deleted.
            SelfVoteError: If the voter wrote the comment.
            InternalError: If the comment cannot be resolved.
        """
        if is_anonymous(commenter):
            raise NotAuthorisedError()
        direction = clamp_direction(direction)
        if not comment_hex or not commenter.commenter_hex:
            raise MissingFieldError()

        with storage_guard(self.db, "loading comment author"):
            row = self.db.execute(author_lookup(comment_hex)).one_or_none()
        if row is None:
            self.db.rollback()
            logger.error("vote on unresolvable comment %s", comment_hex)
            raise InternalError()
        author_hex, deleted = row
        if deleted:
            self.db.rollback()
            raise NoSuchCommentError()
        if author_hex == commenter.commenter_hex:
            self.db.rollback()
            raise SelfVoteError()

        now = utcnow()
        stmt = dialect_insert(self.db, CommentVote).values(
            comment_hex=comment_hex,
            commenter_hex=commenter.commenter_hex,
            direction=direction,
            vote_date=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["comment_hex", "commenter_hex"],
            set_={"direction": direction, "vote_date": now},
        )
        ledger_sum = (
            select(func.coalesce(func.sum(CommentVote.direction), 0))
            .where(CommentVote.comment_hex == comment_hex)
            .scalar_subquery()
        )
        with storage_guard(self.db, "recording vote"):
            self.db.execute(stmt)
            self.db.execute(
                update(Comment)
                .where(Comment.comment_hex == comment_hex)
                .values(score=ledger_sum)
                .execution_options(synchronize_session=False)
            )
            score = self.db.scalar(select(Comment.score).where(Comment.comment_hex == comment_hex))
            self.db.commit()
        return direction, int(score or 0)
