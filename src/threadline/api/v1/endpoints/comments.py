# src/threadline/api/v1/endpoints/comments.py
"""Comment-related endpoints for the Threadline API."""

from fastapi import APIRouter, Request, Response, status

from threadline.schemas.comment import (
    CommentCountRequest,
    CommentCountResponse,
    CommentCreate,
    CommentCreated,
    CommentEdit,
    CommentEdited,
    CommentListRequest,
    CommentListResponse,
)
from threadline.schemas.common import StatusResponse

from ..dependencies import CommentServiceDep, CurrentCommenterDep, SettingsDep

router = APIRouter(prefix="/comments", tags=["comments"])


def _client_ip(request: Request, trust_proxy_headers: bool) -> str:
    forwarded = request.headers.get("x-forwarded-for") if trust_proxy_headers else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.post("/new", response_model=CommentCreated, status_code=status.HTTP_201_CREATED)
def create_comment(
    payload: CommentCreate,
    request: Request,
    commenter: CurrentCommenterDep,
    service: CommentServiceDep,
    settings: SettingsDep,
) -> CommentCreated:
    """Submit a new comment or reply.

    Plain ``def`` so the spam check runs in the threadpool.
    """
    return service.create(
        payload.domain,
        payload.path,
        payload.parent_hex,
        payload.markdown,
        commenter,
        ip=_client_ip(request, settings.trust_proxy_headers),
        user_agent=request.headers.get("user-agent", ""),
    )


@router.post("/list", response_model=CommentListResponse)
async def list_comments(
    payload: CommentListRequest,
    commenter: CurrentCommenterDep,
    service: CommentServiceDep,
) -> CommentListResponse:
    """List the comments of a page as visible to the requester."""
    return service.list(payload.domain, payload.path, commenter)


@router.post("/count", response_model=CommentCountResponse)
async def count_comments(payload: CommentCountRequest, service: CommentServiceDep) -> CommentCountResponse:
    """Return comment counts for several pages of a domain."""
    return CommentCountResponse(comment_counts=service.count(payload.domain, payload.paths))


@router.post("/{comment_hex}/approve", response_model=StatusResponse)
async def approve_comment(
    comment_hex: str,
    commenter: CurrentCommenterDep,
    service: CommentServiceDep,
) -> StatusResponse:
    """Approve a comment awaiting moderation."""
    service.approve(comment_hex, commenter)
    return StatusResponse()


@router.post("/{comment_hex}/edit", response_model=CommentEdited)
async def edit_comment(
    comment_hex: str,
    payload: CommentEdit,
    commenter: CurrentCommenterDep,
    service: CommentServiceDep,
) -> CommentEdited:
    """Replace a comment's markdown."""
    return CommentEdited(html=service.edit(comment_hex, payload.markdown, commenter))


@router.delete("/{comment_hex}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_hex: str,
    commenter: CurrentCommenterDep,
    service: CommentServiceDep,
) -> Response:
    """Replace a comment with a tombstone."""
    service.delete(comment_hex, commenter)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
