# src/threadline/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Threadline API."""

from fastapi import APIRouter

from threadline.schemas.vote import VoteCreate, VoteResponse

from ..dependencies import CurrentCommenterDep, VoteLedgerDep

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteResponse)
async def cast_vote(
    vote_data: VoteCreate,
    commenter: CurrentCommenterDep,
    ledger: VoteLedgerDep,
) -> VoteResponse:
    """Cast, change or withdraw a vote on a comment."""
    direction, score = ledger.vote(commenter, vote_data.comment_hex, vote_data.direction)
    return VoteResponse(comment_hex=vote_data.comment_hex, direction=direction, score=score)
