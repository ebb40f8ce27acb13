"""Commenter-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class CommenterCreate(BaseModel):
    """Schema for registering a local commenter."""

    email: str
    name: str
    password: str
    link: str | None = Field(None, description="Optional website or profile link")
    photo: str | None = Field(None, description="Optional avatar URL")


class CommenterCreated(BaseModel):
    """Registration result."""

    commenter_hex: str


class CommenterResponse(BaseModel):
    """Public commenter profile, without email address."""

    commenter_hex: str
    name: str
    link: str
    photo: str
    provider: str

    model_config = ConfigDict(from_attributes=True)


class CommenterSelf(CommenterResponse):
    """Commenter profile as seen by its owner."""

    email: str


class CommenterLoginResponse(BaseModel):
    """Session token issued after a successful commenter login."""

    commenter_token: str
    commenter: CommenterSelf


class CommenterTokenResponse(BaseModel):
    """Pending session token used to start an SSO round-trip."""

    commenter_token: str
