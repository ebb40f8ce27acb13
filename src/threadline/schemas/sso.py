"""SSO handshake Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SsoPayload(BaseModel):
    """Identity asserted by a domain's SSO endpoint.

    Missing keys decode as empty strings so that presence can be checked
    explicitly after decoding.
    """

    token: str = Field("", description="SSO token minted by the redirect leg")
    email: str = Field("", description="Commenter email address")
    name: str = Field("", description="Commenter display name")
    link: str = Field("", description="Optional profile link")
    photo: str = Field("", description="Optional avatar URL")

    model_config = ConfigDict(extra="ignore")
