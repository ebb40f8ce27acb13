# src/threadline/services/__init__.py
"""Business logic services for the Threadline application."""

from .commenter_auth import CommenterAuthService
from .comments import CommentService
from .owner_auth import OwnerAuthService
from .sso import SsoService
from .votes import VoteLedger

__all__ = [
    "CommentService",
    "CommenterAuthService",
    "OwnerAuthService",
    "SsoService",
    "VoteLedger",
]
