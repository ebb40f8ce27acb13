# src/threadline/models/__init__.py
"""SQLAlchemy models for the Threadline application."""

from .comment import CommentVote, Comment
from .commenter import Commenter, CommenterSession
from .domain import Domain, DomainModerator, Page
from .owner import Owner, OwnerConfirmToken, OwnerResetToken, OwnerSession
from .sso import SsoToken

__all__ = [
    "Comment", "CommentVote",
    "Commenter", "CommenterSession",
    "Domain", "DomainModerator", "Page",
    "Owner", "OwnerConfirmToken", "OwnerResetToken", "OwnerSession",
    "SsoToken",
]
