"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for submitting a new comment."""

    domain: str
    path: str
    parent_hex: str = Field("root", description="Parent comment identifier or 'root'")
    markdown: str


class CommentCreated(BaseModel):
    """Result of a submission; ``state`` reflects moderation."""

    comment_hex: str
    commenter_hex: str
    parent_hex: str
    state: str
    html: str


class CommentEdit(BaseModel):
    """Schema for editing a comment."""

    markdown: str


class CommentEdited(BaseModel):
    """Freshly rendered HTML after an edit."""

    html: str


class CommentListRequest(BaseModel):
    """Thread to list."""

    domain: str
    path: str


class CommentView(BaseModel):
    """A comment as seen by the requester.

    ``markdown`` is only present for the author and moderators and ``state``
    only for moderators.
    """

    comment_hex: str
    commenter_hex: str
    parent_hex: str
    html: str
    markdown: str | None = None
    state: str | None = None
    score: int
    direction: int = Field(0, description="The requester's own vote on this comment")
    creation_date: datetime

    model_config = ConfigDict(from_attributes=True)


class CommenterView(BaseModel):
    """Commenter attributes disclosed alongside a listing."""

    commenter_hex: str
    name: str
    link: str
    photo: str
    provider: str
    is_moderator: bool


class PageView(BaseModel):
    """Thread attributes."""

    is_locked: bool = False
    comment_count: int = 0
    sticky_comment_hex: str | None = None
    title: str | None = None


class CommentListResponse(BaseModel):
    """Thread listing with the requester-specific projection applied."""

    comments: list[CommentView]
    commenters: dict[str, CommenterView]
    requester_is_moderator: bool
    requester_hex: str
    page: PageView
    is_frozen: bool
    require_identification: bool
    require_moderation: bool
    default_sort_policy: str
    configured_idps: list[str]


class CommentCountRequest(BaseModel):
    """Paths of a domain to count comments for."""

    domain: str
    paths: list[str]


class CommentCountResponse(BaseModel):
    """Comment count per requested path."""

    comment_counts: dict[str, int]
