# src/threadline/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .commenters import router as commenters_router
from .comments import router as comments_router
from .domains import router as domains_router
from .owners import router as owners_router
from .sso import router as sso_router
from .votes import router as votes_router

__all__ = [
    "owners_router",
    "domains_router",
    "commenters_router",
    "sso_router",
    "comments_router",
    "votes_router",
]
