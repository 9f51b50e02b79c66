"""Pydantic schemas for the remote comments API.

Wire format of the books service: snake_case records on the way in,
``{content, parentId}`` on comment creation.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import ReactionType, normalize_id


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a root comment or a reply."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(..., min_length=1)
    parent_id: str | None = Field(default=None, alias="parentId")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject whitespace-only content; the text itself is sent untrimmed."""
        if not v.strip():
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v

    @field_validator("parent_id", mode="before")
    @classmethod
    def validate_parent_id(cls, v: Any) -> Any:
        return normalize_id(v)


class ReactRequest(BaseModel):
    """Request to react to a comment."""

    reaction: ReactionType


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentPayload(BaseModel):
    """A comment record as returned by the books service."""

    model_config = ConfigDict(extra="ignore")

    id: str
    content: str
    user_id: str
    username: str = ""
    parent_id: str | None = None
    created_at: datetime
    is_pinned: bool = False
    likes: int = 0
    dislikes: int = 0

    @field_validator("id", "user_id", "parent_id", mode="before")
    @classmethod
    def validate_ids(cls, v: Any) -> Any:
        return normalize_id(v)

    @field_validator("is_pinned", mode="before")
    @classmethod
    def validate_is_pinned(cls, v: Any) -> Any:
        # Some backends return NULL or 0/1 for booleans
        return bool(v) if v is not None else False

    @field_validator("likes", "dislikes", mode="before")
    @classmethod
    def validate_counts(cls, v: Any) -> Any:
        return v if v is not None else 0

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        """Naive timestamps are treated as UTC so every record sorts together."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class ReactionCountsResponse(BaseModel):
    """Authoritative counts after a reaction."""

    likes: int = 0
    dislikes: int = 0


class PinResponse(BaseModel):
    """Authoritative pin flag after a toggle."""

    is_pinned: bool


class SessionUserResponse(BaseModel):
    """User record returned by session verification."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        return normalize_id(v)


class VerifyResponse(BaseModel):
    """Response of ``GET /auth/verify``."""

    user: SessionUserResponse
