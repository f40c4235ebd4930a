"""Request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str


class MarkdownRequest(BaseModel):
    """Partial markdown to heal."""

    content: str


class MarkdownResponse(BaseModel):
    """Healed markdown."""

    content: str


class SessionResponse(BaseModel):
    """Response model for session creation."""

    session_id: str


class ApprovalRequest(BaseModel):
    """Human decision for a tool awaiting approval."""

    approved: bool
    reason: str | None = None
