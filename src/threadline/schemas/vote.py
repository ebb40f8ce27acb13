"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for casting or withdrawing a vote.

    Any integer is accepted; positive values count as an upvote and negative
    values as a downvote.
    """

    comment_hex: str
    direction: int = Field(..., description="1 for upvote, -1 for downvote, 0 to withdraw")


class VoteResponse(BaseModel):
    """Stored vote and the comment's recomputed score."""

    comment_hex: str
    direction: int
    score: int
