"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import (
    CommentCountRequest,
    CommentCountResponse,
    CommentCreate,
    CommentCreated,
    CommentEdit,
    CommentEdited,
    CommentListRequest,
    CommentListResponse,
)
from .commenter import CommenterCreate, CommenterResponse, CommenterSelf
from .common import ErrorResponse, StatusResponse
from .owner import LoginRequest, OwnerCreate, OwnerResponse
from .sso import SsoPayload
from .vote import VoteCreate, VoteResponse

__all__ = [
    "CommentCountRequest", "CommentCountResponse",
    "CommentCreate", "CommentCreated",
    "CommentEdit", "CommentEdited",
    "CommentListRequest", "CommentListResponse",
    "CommenterCreate", "CommenterResponse", "CommenterSelf",
    "ErrorResponse", "StatusResponse",
    "LoginRequest", "OwnerCreate", "OwnerResponse",
    "SsoPayload",
    "VoteCreate", "VoteResponse",
]
