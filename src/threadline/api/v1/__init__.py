# src/threadline/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    commenters_router,
    comments_router,
    domains_router,
    owners_router,
    sso_router,
    votes_router,
)

__all__ = [
    "owners_router",
    "domains_router",
    "commenters_router",
    "sso_router",
    "comments_router",
    "votes_router",
]
