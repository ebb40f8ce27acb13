# mypy: ignore-errors
"""Tests for the vote ledger."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from threadline.core.errors import (
    InternalError,
    MissingFieldError,
    NoSuchCommentError,
    NotAuthorisedError,
    SelfVoteError,
)
from threadline.models import Comment, CommentVote
from threadline.services.votes import VoteLedger, author_lookup, clamp_direction


@pytest.fixture()
def ledger(db_session):
    return VoteLedger(db_session)


@pytest.fixture()
def comment(post_comment, alice):
    return post_comment(alice.commenter)


@pytest.mark.parametrize(("raw", "clamped"), [(5, 1), (1, 1), (0, 0), (-1, -1), (-9, -1)])
def test_clamp_direction(raw, clamped) -> None:
    assert clamp_direction(raw) == clamped


def test_vote_is_clamped_and_scored(ledger, comment, bob, db_session) -> None:
    assert ledger.vote(bob.commenter, comment.comment_hex, 5) == (1, 1)

    vote = db_session.get(CommentVote, (comment.comment_hex, bob.commenter.commenter_hex))
    assert vote.direction == 1


def test_revote_overwrites(ledger, comment, bob, moderator, db_session) -> None:
    ledger.vote(bob.commenter, comment.comment_hex, 1)
    ledger.vote(moderator.commenter, comment.comment_hex, 1)

    assert ledger.vote(bob.commenter, comment.comment_hex, -9) == (-1, 0)
    assert ledger.vote(bob.commenter, comment.comment_hex, 0) == (0, 1)

    count = db_session.scalar(select(func.count()).select_from(CommentVote))
    assert count == 2
    db_session.expire_all()
    assert db_session.get(Comment, comment.comment_hex).score == 1


def test_self_vote_rejected(ledger, comment, alice) -> None:
    with pytest.raises(SelfVoteError):
        ledger.vote(alice.commenter, comment.comment_hex, 1)


def test_anonymous_vote_rejected(ledger, comment) -> None:
    with pytest.raises(NotAuthorisedError):
        ledger.vote(None, comment.comment_hex, 1)


def test_missing_comment_hex(ledger, bob) -> None:
    with pytest.raises(MissingFieldError):
        ledger.vote(bob.commenter, "", 1)


def test_unknown_comment_is_internal_error(ledger, bob) -> None:
    with pytest.raises(InternalError):
        ledger.vote(bob.commenter, "cd" * 32, 1)


def test_deleted_comment_rejects_votes(ledger, comment, comment_service, alice, bob) -> None:
    comment_service.delete(comment.comment_hex, alice.commenter)

    with pytest.raises(NoSuchCommentError):
        ledger.vote(alice.commenter, comment.comment_hex, 1)
    with pytest.raises(NoSuchCommentError):
        ledger.vote(bob.commenter, comment.comment_hex, 1)


def test_author_lookup_locks_comment_row() -> None:
    compiled = str(author_lookup("ab" * 32).compile(dialect=postgresql.dialect()))

    assert compiled.rstrip().endswith("FOR UPDATE")
