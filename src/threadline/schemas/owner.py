"""Owner-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OwnerCreate(BaseModel):
    """Schema for registering a new owner."""

    email: str = Field(..., description="Login email address")
    name: str = Field(..., description="Display name")
    password: str = Field(..., description="Plain-text password; stored as an Argon2id digest")


class OwnerCreated(BaseModel):
    """Registration result."""

    owner_hex: str
    confirm_email_sent: bool = Field(..., description="True if a confirmation link was sent")


class LoginRequest(BaseModel):
    """Email and password credentials."""

    email: str
    password: str


class OwnerLoginResponse(BaseModel):
    """Session token issued after a successful owner login."""

    owner_token: str


class OwnerResponse(BaseModel):
    """Public owner profile."""

    owner_hex: str
    email: str
    name: str
    confirmed_email: bool
    join_date: datetime

    model_config = ConfigDict(from_attributes=True)


class OwnerDeleteRequest(BaseModel):
    """Account deletion options."""

    delete_domains: bool = Field(False, description="Also delete every domain the owner holds")


class DomainResponse(BaseModel):
    """Domain settings as seen by its owner."""

    domain: str
    name: str
    owner_hex: str
    creation_date: datetime
    state: str
    require_identification: bool
    require_moderation: bool
    moderate_all_anonymous: bool
    auto_spam_filter: bool
    email_notification_policy: str
    default_sort_policy: str
    sso_url: str | None = None
    idps: dict[str, bool] = Field(default_factory=dict)
    moderators: list[str] = Field(default_factory=list)
