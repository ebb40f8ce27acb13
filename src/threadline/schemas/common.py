"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""

    detail: str = Field(..., description="Human-readable error message.")
    code: str = Field(..., description="Stable machine-readable error kind.")


class StatusResponse(BaseModel):
    """Acknowledgement for operations without a payload."""

    status: str = "ok"
